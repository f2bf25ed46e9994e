# ris_core/orders/admin.py
from __future__ import annotations

from django.contrib import admin

from ris_core.orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "patient",
        "orderer",
        "start_date",
        "voided",
        "discontinued",
        "created_at",
        "updated_at",
    )
    list_filter = ("voided", "discontinued")
    search_fields = ("id", "patient__mrn", "patient__full_name")
    ordering = ("-created_at",)
    readonly_fields = (
        "created_at",
        "updated_at",
        "voided",
        "void_reason",
        "voided_by",
        "date_voided",
        "discontinued",
        "discontinued_reason",
        "discontinued_date",
        "discontinued_by",
    )
    list_select_related = ("patient", "orderer")
