import pytest
from django.utils import timezone

from ris_core.common.permissions import Capabilities
from ris_core.orders.models import Order
from ris_core.radiology.lifecycle import ActionRequest, OrderCommand, OutcomeCode, submit
from ris_core.radiology.models import (
    PerformedProcedureStepStatus,
    RequestedProcedurePriority,
    ScheduledProcedureStepStatus,
    Study,
)
from ris_core.radiology.services import StudyService

pytestmark = pytest.mark.django_db


def test_referring_physician_gets_routine_priority_by_default(referring_user, patient):
    study = Study(modality="CT")

    ok = StudyService.prepare(
        study=study,
        order=Order(patient=patient),
        capabilities=Capabilities.for_user(referring_user),
        actor=referring_user,
    )

    assert ok is True
    assert study.priority == RequestedProcedurePriority.ROUTINE


def test_explicit_priority_is_kept(referring_user, patient):
    study = Study(modality="CT", priority=RequestedProcedurePriority.STAT)

    StudyService.prepare(
        study=study,
        order=Order(patient=patient),
        capabilities=Capabilities.for_user(referring_user),
        actor=referring_user,
    )

    assert study.priority == RequestedProcedurePriority.STAT


def test_scheduler_takes_unassigned_study(scheduler_user, saved_study):
    study = Study(modality="CR")

    ok = StudyService.prepare(
        study=study,
        order=saved_study.order,
        capabilities=Capabilities.for_user(scheduler_user),
        actor=scheduler_user,
        study_id=saved_study.pk,
    )

    assert ok is True
    assert study.pk == saved_study.pk
    assert study.scheduler_id == scheduler_user.pk


def test_scheduler_cannot_take_performed_study(scheduler_user, saved_study):
    Study.objects.filter(pk=saved_study.pk).update(performed_status=PerformedProcedureStepStatus.COMPLETED)
    study = Study(modality="CR")

    ok = StudyService.prepare(
        study=study,
        order=saved_study.order,
        capabilities=Capabilities.for_user(scheduler_user),
        actor=scheduler_user,
        study_id=saved_study.pk,
    )

    assert ok is False
    assert study.scheduler_id is None


def test_performing_and_reading_physicians_assign_themselves(performing_user, reading_user, saved_study):
    study = Study(modality="CR")
    StudyService.prepare(
        study=study,
        order=saved_study.order,
        capabilities=Capabilities.for_user(performing_user),
        actor=performing_user,
        study_id=saved_study.pk,
    )
    assert study.performing_physician_id == performing_user.pk

    StudyService.prepare(
        study=study,
        order=saved_study.order,
        capabilities=Capabilities.for_user(reading_user),
        actor=reading_user,
        study_id=saved_study.pk,
    )
    assert study.reading_physician_id == reading_user.pk


def test_start_date_marks_study_scheduled(user, patient):
    study = Study(modality="MR")

    StudyService.prepare(
        study=study,
        order=Order(patient=patient, start_date=timezone.now()),
        capabilities=Capabilities.for_user(user),
        actor=user,
    )

    assert study.scheduled_status == ScheduledProcedureStepStatus.SCHEDULED


def test_submit_stops_on_performed_study(scheduler_user, saved_study, accepting_gateway):
    Study.objects.filter(pk=saved_study.pk).update(performed_status=PerformedProcedureStepStatus.COMPLETED)
    order = saved_study.order
    request = ActionRequest(
        command=OrderCommand.SAVE,
        order=Order(pk=order.pk, patient=order.patient, instructions="reschedule"),
        study=Study(pk=saved_study.pk, modality="CR"),
        study_id=saved_study.pk,
    )

    outcome = submit(request, user=scheduler_user, gateway=accepting_gateway)

    assert outcome.success is False
    assert outcome.outcome_code == OutcomeCode.STUDY_PERFORMED
    assert accepting_gateway.sent == []
    order.refresh_from_db()
    assert order.instructions == "Chest PA"


def test_submit_saves_with_role_defaults(referring_user, patient, accepting_gateway):
    request = ActionRequest(
        command=OrderCommand.SAVE,
        order=Order(patient=patient, orderer=referring_user),
        study=Study(modality="US"),
    )

    outcome = submit(request, user=referring_user, gateway=accepting_gateway)

    assert outcome.outcome_code == OutcomeCode.SAVED_OK
    stored = Study.objects.get(order_id=outcome.order_id)
    assert stored.priority == RequestedProcedurePriority.ROUTINE


def test_scheduler_assignment_survives_save(scheduler_user, saved_study, accepting_gateway):
    order = saved_study.order
    request = ActionRequest(
        command=OrderCommand.SAVE,
        order=Order(pk=order.pk, patient=order.patient, start_date=timezone.now()),
        study=Study(pk=saved_study.pk, modality="CR"),
        study_id=saved_study.pk,
    )

    outcome = submit(request, user=scheduler_user, gateway=accepting_gateway)

    assert outcome.outcome_code == OutcomeCode.SAVED_OK
    saved_study.refresh_from_db()
    assert saved_study.scheduler_id == scheduler_user.pk
    assert saved_study.scheduled_status == ScheduledProcedureStepStatus.SCHEDULED
