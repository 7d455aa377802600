import uuid

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("timezone", models.CharField(default="UTC", max_length=64)),
                ("default_reminder_cadence", models.CharField(choices=[("7,3,1", "7, 3, and 1 days before"), ("14,7,3,1", "14, 7, 3, and 1 days before"), ("3,1", "3 and 1 days before"), ("7,1", "7 and 1 days before"), ("1", "1 day before only")], default="7,3,1", max_length=32)),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="Opportunity",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=500)),
                ("organization", models.CharField(blank=True, max_length=300, null=True)),
                ("description", models.TextField(blank=True, null=True)),
                ("source_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("opportunity_type", models.CharField(choices=[("scholarship", "Scholarship"), ("internship", "Internship"), ("fellowship", "Fellowship"), ("job", "Job")], max_length=20)),
                ("status", models.CharField(choices=[("interested", "Interested"), ("in_progress", "In Progress"), ("submitted", "Submitted"), ("interview", "Interview"), ("accepted", "Accepted"), ("rejected", "Rejected"), ("archived", "Archived")], default="interested", max_length=20)),
                ("deadline", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("checklist_items", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="opportunities", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name_plural": "opportunities",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="TimelineStep",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("step_type", models.CharField(max_length=20)),
                ("label", models.CharField(max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("opportunity", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="timeline_steps", to="tracker.opportunity")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Reminder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("scheduled_at", models.DateTimeField()),
                ("offset_days", models.PositiveSmallIntegerField()),
                ("channel", models.CharField(default="email", max_length=20)),
                ("status", models.CharField(choices=[("sent", "Sent"), ("failed", "Failed")], max_length=10)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("opportunity", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reminders", to="tracker.opportunity")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reminders", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="Attachment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("filename", models.CharField(max_length=255)),
                ("file_url", models.URLField(max_length=1000)),
                ("file_size", models.PositiveIntegerField(default=0)),
                ("mime_type", models.CharField(max_length=100)),
                ("category", models.CharField(default="other", max_length=50)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("opportunity", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attachments", to="tracker.opportunity")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attachments", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.AddConstraint(
            model_name="opportunity",
            constraint=models.UniqueConstraint(condition=models.Q(("source_url__isnull", False)), fields=("created_by", "source_url"), name="unique_source_url_per_owner"),
        ),
        migrations.AddIndex(
            model_name="reminder",
            index=models.Index(fields=["opportunity", "offset_days", "status"], name="reminder_dedup_idx"),
        ),
    ]
