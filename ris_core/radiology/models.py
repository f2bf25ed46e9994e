# ris_core/radiology/models.py
from django.conf import settings
from django.db import models

from ris_core.common.models import TimeStampedModel
from ris_core.orders.models import Order


class Modality(models.TextChoices):
    CR = "CR", "Computed Radiography"
    MR = "MR", "Magnetic Resonance"
    CT = "CT", "Computed Tomography"
    NM = "NM", "Nuclear Medicine"
    US = "US", "Ultrasound"
    XA = "XA", "X-Ray Angiography"


class RequestedProcedurePriority(models.TextChoices):
    STAT = "STAT", "Stat"
    HIGH = "HIGH", "High"
    ROUTINE = "ROUTINE", "Routine"
    MEDIUM = "MEDIUM", "Medium"
    LOW = "LOW", "Low"


class ScheduledProcedureStepStatus(models.TextChoices):
    SCHEDULED = "SCHEDULED", "Scheduled"
    ARRIVED = "ARRIVED", "Arrived"
    READY = "READY", "Ready"
    STARTED = "STARTED", "Started"
    DEPARTED = "DEPARTED", "Departed"


class PerformedProcedureStepStatus(models.TextChoices):
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    DISCONTINUED = "DISCONTINUED", "Discontinued"
    COMPLETED = "COMPLETED", "Completed"


class MwlStatus(models.TextChoices):
    """
    Outcome of the last modality worklist notification for a study.
    Written only by a worklist gateway.
    """
    DEFAULT = "default", "Not sent"
    SAVE_OK = "save_ok", "Saved"
    SAVE_ERR = "save_err", "Save failed"
    UPDATE_OK = "update_ok", "Updated"
    UPDATE_ERR = "update_err", "Update failed"
    VOID_OK = "void_ok", "Voided"
    VOID_ERR = "void_err", "Void failed"
    UNVOID_OK = "unvoid_ok", "Unvoided"
    UNVOID_ERR = "unvoid_err", "Unvoid failed"
    DISCONTINUE_OK = "discontinue_ok", "Discontinued"
    DISCONTINUE_ERR = "discontinue_err", "Discontinue failed"
    UNDISCONTINUE_OK = "undiscontinue_ok", "Undiscontinued"
    UNDISCONTINUE_ERR = "undiscontinue_err", "Undiscontinue failed"


class Study(TimeStampedModel):
    """
    Radiology study bound 1:1 to an order. The study references the order;
    it does not own the order's lifecycle.
    """
    order = models.OneToOneField(Order, on_delete=models.PROTECT, related_name="study")

    # Assigned once, on the first successful save: UID prefix + this row's id.
    study_instance_uid = models.CharField(max_length=64, unique=True, null=True, blank=True)

    modality = models.CharField(max_length=8, choices=Modality.choices, blank=True)
    priority = models.CharField(max_length=16, choices=RequestedProcedurePriority.choices, blank=True)

    scheduler = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="scheduled_studies",
        null=True,
        blank=True,
    )
    performing_physician = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="performed_studies",
        null=True,
        blank=True,
    )
    reading_physician = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="read_studies",
        null=True,
        blank=True,
    )

    scheduled_status = models.CharField(max_length=16, choices=ScheduledProcedureStepStatus.choices, blank=True)
    performed_status = models.CharField(max_length=16, choices=PerformedProcedureStepStatus.choices, blank=True)
    mwl_status = models.CharField(max_length=24, choices=MwlStatus.choices, default=MwlStatus.DEFAULT)

    # Editable from the order form; uid and mwl_status are never taken from a payload.
    PAYLOAD_FIELDS = (
        "modality",
        "priority",
        "scheduler",
        "performing_physician",
        "reading_physician",
        "scheduled_status",
        "performed_status",
    )

    class Meta:
        db_table = "radiology_study"
        indexes = [
            models.Index(fields=["mwl_status"], name="radiology_mwl_status_idx"),
        ]

    def __str__(self) -> str:
        return self.study_instance_uid or f"Study {self.pk}"

    @property
    def is_schedulable(self) -> bool:
        return not self.performed_status
