# ris_core/patients/admin.py
from django.contrib import admin

from ris_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("full_name", "mrn", "gender", "date_of_birth", "created_at")
    search_fields = ("full_name", "mrn")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at",)
