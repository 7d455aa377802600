from celery import shared_task
from .reminders import send_deadline_reminders


@shared_task
def send_deadline_reminders_task():
    return send_deadline_reminders()
