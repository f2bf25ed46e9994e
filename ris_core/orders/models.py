# ris_core/orders/models.py
from django.conf import settings
from django.db import models

from ris_core.common.models import TimeStampedModel
from ris_core.patients.models import Patient


class Order(TimeStampedModel):
    """
    Clinical instruction record. Never physically deleted: void and
    discontinue are independent flags, each reversible on its own.
    """
    # Clinical payload a save may change; lifecycle flags are excluded.
    PAYLOAD_FIELDS = ("patient", "orderer", "instructions", "start_date", "auto_expire_date")

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="orders")
    orderer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="placed_orders",
        null=True,
        blank=True,
    )
    instructions = models.TextField(blank=True)
    start_date = models.DateTimeField(null=True, blank=True)
    auto_expire_date = models.DateTimeField(null=True, blank=True)

    voided = models.BooleanField(default=False)
    void_reason = models.CharField(max_length=255, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="voided_orders",
        null=True,
        blank=True,
    )
    date_voided = models.DateTimeField(null=True, blank=True)

    discontinued = models.BooleanField(default=False)
    discontinued_reason = models.CharField(max_length=255, blank=True)
    discontinued_date = models.DateTimeField(null=True, blank=True)
    discontinued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="discontinued_orders",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders_order"
        indexes = [
            models.Index(fields=["patient", "voided"], name="orders_patient_voided_idx"),
        ]

    def __str__(self) -> str:
        return f"Order {self.pk} ({self.patient_id})"
