# ris_core/radiology/admin.py
from __future__ import annotations

from django.contrib import admin

from ris_core.radiology.models import Study


@admin.register(Study)
class StudyAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "study_instance_uid",
        "order",
        "modality",
        "priority",
        "scheduled_status",
        "performed_status",
        "mwl_status",
        "updated_at",
    )
    list_filter = ("modality", "priority", "mwl_status", "performed_status")
    search_fields = ("study_instance_uid", "order__id", "order__patient__mrn")
    ordering = ("-created_at",)
    # Written by the order lifecycle only.
    readonly_fields = ("study_instance_uid", "mwl_status", "created_at", "updated_at")
    list_select_related = ("order",)
