# ris_core/radiology/services.py
from __future__ import annotations

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction

from ris_core.common.permissions import Capabilities
from ris_core.orders.models import Order
from ris_core.orders.selectors import OrderSelector
from ris_core.patients.models import Patient
from ris_core.radiology.models import (
    MwlStatus,
    RequestedProcedurePriority,
    ScheduledProcedureStepStatus,
    Study,
)
from ris_core.radiology.selectors import StudySelector

logger = logging.getLogger(__name__)

DEFAULT_STUDY_UID_PREFIX = "1.2.826.0.1.3680043.8.2186.1."

# Filled by form preparation; an empty payload value never clears an assignment.
ASSIGNEE_FIELDS = ("scheduler", "performing_physician", "reading_physician")


def study_uid_prefix() -> str:
    return getattr(settings, "RADIOLOGY_STUDY_UID_PREFIX", DEFAULT_STUDY_UID_PREFIX)


class StudyService:
    """
    Write-model operations for Studies.
    - save_study binds a study to its order (one study per order)
    - assign_study_instance_uid sets the UID once and never changes it
    - record_mwl_status is the only writer of mwl_status
    """

    @staticmethod
    def _locked(study_id) -> Study:
        try:
            return Study.objects.select_for_update().get(id=study_id)
        except Study.DoesNotExist:
            raise StudySelector.NotFound(f"Study {study_id} does not exist.")

    @staticmethod
    def ensure_bound(*, study_id, order_id) -> None:
        """A study stays with the order it was created for."""
        bound_to = Study.objects.filter(id=study_id).values_list("order_id", flat=True).first()
        if bound_to is None:
            raise StudySelector.NotFound(f"Study {study_id} does not exist.")
        if order_id is None or bound_to != order_id:
            raise ValidationError({"study_id": f"Study {study_id} belongs to order {bound_to}."})

    @staticmethod
    @transaction.atomic
    def save_study(*, study: Study) -> Study:
        if study.pk is None:
            existing_id = Study.objects.filter(order_id=study.order_id).values_list("id", flat=True).first()
            if existing_id is None:
                study.mwl_status = MwlStatus.DEFAULT
                study.study_instance_uid = None
                study.full_clean()
                study.save()
                return study
            study.pk = existing_id

        current = StudyService._locked(study.pk)
        if current.order_id != study.order_id:
            raise ValidationError({"study_id": f"Study {study.pk} belongs to order {current.order_id}."})
        for name in Study.PAYLOAD_FIELDS:
            attname = Study._meta.get_field(name).attname
            value = getattr(study, attname)
            if name in ASSIGNEE_FIELDS and value is None:
                continue
            setattr(current, attname, value)
        current.full_clean()
        current.save(update_fields=[*Study.PAYLOAD_FIELDS, "updated_at"])
        return current

    @staticmethod
    @transaction.atomic
    def assign_study_instance_uid(*, study_id) -> Study:
        study = StudyService._locked(study_id)
        if study.study_instance_uid:
            return study

        study.study_instance_uid = f"{study_uid_prefix()}{study.pk}"
        study.save(update_fields=["study_instance_uid", "updated_at"])
        logger.info(
            "Radiology order received with study_instance_uid=%s order_id=%s",
            study.study_instance_uid,
            study.order_id,
        )
        return study

    @staticmethod
    @transaction.atomic
    def record_mwl_status(*, study_id, status: str) -> Study:
        study = StudyService._locked(study_id)
        study.mwl_status = MwlStatus(status)
        study.save(update_fields=["mwl_status", "updated_at"])
        return study

    @staticmethod
    def prepare(
        *,
        study: Study,
        order: Order,
        capabilities: Capabilities,
        actor=None,
        study_id=None,
    ) -> bool:
        """
        Fill in what the caller's roles imply before a form command runs.

        Assignments are checked against the persisted study when study_id
        is given. Returns False when a scheduler would take over a study
        whose procedure has already been performed; nothing is changed then.
        """
        if study_id is not None:
            study.pk = study_id
            persisted = StudySelector.get_study(study_id=study_id)
        else:
            persisted = study

        actor_id = getattr(actor, "pk", None)

        if capabilities.referring and not persisted.priority:
            study.priority = RequestedProcedurePriority.ROUTINE

        if capabilities.scheduler and persisted.scheduler_id is None:
            if not persisted.is_schedulable:
                return False
            study.scheduler_id = actor_id

        if capabilities.performing and persisted.performing_physician_id is None:
            study.performing_physician_id = actor_id

        if capabilities.reading and persisted.reading_physician_id is None:
            study.reading_physician_id = actor_id

        if order.start_date is not None:
            study.scheduled_status = ScheduledProcedureStepStatus.SCHEDULED

        return True


class RadiologyOrderFormService:
    """
    Read side of the order form: what an empty or existing form starts with.
    """

    @staticmethod
    def initial_form(*, order_id=None, patient_id=None, user=None, capabilities: Capabilities) -> tuple[Order, Study]:
        if order_id is not None:
            order = OrderSelector.get_order(order_id=order_id)
            try:
                study = StudySelector.get_study_by_order_id(order_id=order.pk)
            except StudySelector.NotFound:
                study = Study(order=order)
            return order, study

        order = Order()
        if patient_id is not None:
            order.patient = Patient.objects.get(id=patient_id)
        if capabilities.referring and order.orderer_id is None:
            order.orderer = user
        return order, Study()
