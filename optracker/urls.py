from django.contrib import admin
from django.urls import path
from tracker import views

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/opportunities/", views.opportunity_collection, name="opportunity_collection"),
    path("api/opportunities/extract/", views.extract_from_url, name="opportunity_extract"),
    path("api/opportunities/<str:opportunity_id>/", views.opportunity_detail, name="opportunity_detail"),
    path("api/opportunities/<str:opportunity_id>/status/", views.opportunity_status, name="opportunity_status"),
    path("api/documents/", views.document_collection, name="document_collection"),
    path("api/documents/<int:document_id>/", views.document_detail, name="document_detail"),
    path("api/user/settings/", views.user_settings, name="user_settings"),
    path("api/cron/reminders/", views.cron_reminders, name="cron_reminders"),
]
