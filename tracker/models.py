import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q


class OpportunityType(models.TextChoices):
    SCHOLARSHIP = "scholarship", "Scholarship"
    INTERNSHIP = "internship", "Internship"
    FELLOWSHIP = "fellowship", "Fellowship"
    JOB = "job", "Job"


class OpportunityStatus(models.TextChoices):
    INTERESTED = "interested", "Interested"
    IN_PROGRESS = "in_progress", "In Progress"
    SUBMITTED = "submitted", "Submitted"
    INTERVIEW = "interview", "Interview"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    ARCHIVED = "archived", "Archived"


# Seed step written once at creation; every other step mirrors a status value.
SAVED_STEP = "saved"

REMINDER_CADENCES = [
    ("7,3,1", "7, 3, and 1 days before"),
    ("14,7,3,1", "14, 7, 3, and 1 days before"),
    ("3,1", "3 and 1 days before"),
    ("7,1", "7 and 1 days before"),
    ("1", "1 day before only"),
]


class User(AbstractUser):
    timezone = models.CharField(max_length=64, default="UTC")
    default_reminder_cadence = models.CharField(max_length=32, choices=REMINDER_CADENCES, default="7,3,1")

    @property
    def name(self):
        return self.get_full_name() or self.username


class Opportunity(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="opportunities")
    title = models.CharField(max_length=500)
    organization = models.CharField(max_length=300, null=True, blank=True)
    description = models.TextField(null=True, blank=True)
    source_url = models.URLField(max_length=1000, null=True, blank=True)
    opportunity_type = models.CharField(max_length=20, choices=OpportunityType.choices)
    status = models.CharField(max_length=20, choices=OpportunityStatus.choices, default=OpportunityStatus.INTERESTED)
    deadline = models.DateTimeField(null=True, blank=True, db_index=True)
    tags = models.JSONField(default=list, blank=True)
    checklist_items = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "opportunities"
        constraints = [
            models.UniqueConstraint(
                fields=["created_by", "source_url"],
                condition=Q(source_url__isnull=False),
                name="unique_source_url_per_owner",
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"


class TimelineStep(models.Model):
    opportunity = models.ForeignKey(Opportunity, on_delete=models.CASCADE, related_name="timeline_steps")
    step_type = models.CharField(max_length=20)
    label = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Timeline steps are append-only")
        super().save(*args, **kwargs)

    def __str__(self):
        return self.label


class Reminder(models.Model):
    class Status(models.TextChoices):
        SENT = "sent", "Sent"
        FAILED = "failed", "Failed"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="reminders")
    opportunity = models.ForeignKey(Opportunity, on_delete=models.CASCADE, related_name="reminders")
    scheduled_at = models.DateTimeField()
    offset_days = models.PositiveSmallIntegerField()
    channel = models.CharField(max_length=20, default="email")
    status = models.CharField(max_length=10, choices=Status.choices)
    sent_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [models.Index(fields=["opportunity", "offset_days", "status"], name="reminder_dedup_idx")]

    def __str__(self):
        return f"{self.opportunity_id} -{self.offset_days}d {self.status}"


class Attachment(models.Model):
    opportunity = models.ForeignKey(
        Opportunity, on_delete=models.CASCADE, related_name="attachments", null=True, blank=True,
    )
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="attachments")
    filename = models.CharField(max_length=255)
    file_url = models.URLField(max_length=1000)
    file_size = models.PositiveIntegerField(default=0)
    mime_type = models.CharField(max_length=100)
    category = models.CharField(max_length=50, default="other")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.filename
