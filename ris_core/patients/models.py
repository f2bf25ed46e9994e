# ris_core/patients/models.py
import uuid

from django.db import models

from ris_core.common.models import TimeStampedModel


class Patient(TimeStampedModel):
    """
    Patient an order is placed for. Orders reference it; they never own it.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    full_name = models.CharField(max_length=255)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=32, blank=True)

    # medical record number
    mrn = models.CharField(max_length=64, unique=True)

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["full_name"], name="patients_full_name_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.mrn})"
