from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import Attachment, Opportunity, Reminder, TimelineStep, User


@admin.register(User)
class TrackerUserAdmin(UserAdmin):
    fieldsets = UserAdmin.fieldsets + (
        ("Reminders", {"fields": ("timezone", "default_reminder_cadence")}),
    )


class TimelineStepInline(admin.TabularInline):
    model = TimelineStep
    extra = 0
    readonly_fields = ("step_type", "label", "created_at")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Opportunity)
class OpportunityAdmin(admin.ModelAdmin):
    list_display = ("title", "organization", "opportunity_type", "status", "deadline", "created_by")
    search_fields = ("title", "organization", "description")
    list_filter = ("status", "opportunity_type", "deadline")
    inlines = [TimelineStepInline]


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ("opportunity", "user", "offset_days", "channel", "status", "sent_at")
    list_filter = ("status", "offset_days", "channel")
    readonly_fields = ("user", "opportunity", "scheduled_at", "offset_days", "channel", "status", "sent_at")


@admin.register(Attachment)
class AttachmentAdmin(admin.ModelAdmin):
    list_display = ("filename", "opportunity", "mime_type", "file_size", "created_at")
    list_filter = ("category", "mime_type")
