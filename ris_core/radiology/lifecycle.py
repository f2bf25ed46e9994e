# ris_core/radiology/lifecycle.py
"""
Keeps a radiology order and its study consistent with the modality worklist.

Two consistency orders:
- saveOrder commits locally first, then notifies the worklist. A rejected
  notification is reported, never rolled back: the order must not be lost.
- voidOrder / unvoidOrder / discontinueOrder / undiscontinueOrder ask the
  worklist first and only touch the order once it answered with the
  matching "ok" status.

The worklist outcome is always read back from the stored study after the
gateway call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable
from uuid import UUID

from django.db import models

from ris_core.common.permissions import Capabilities
from ris_core.orders.models import Order
from ris_core.orders.selectors import OrderSelector
from ris_core.orders.services import OrderService, require_reason
from ris_core.radiology.models import MwlStatus, Study
from ris_core.radiology.selectors import StudySelector
from ris_core.radiology.services import StudyService
from ris_core.radiology.worklist import OrderRequest, WorklistGateway, get_worklist_gateway

logger = logging.getLogger(__name__)


class OrderCommand(models.TextChoices):
    SAVE = "saveOrder", "Save order"
    VOID = "voidOrder", "Void order"
    UNVOID = "unvoidOrder", "Unvoid order"
    DISCONTINUE = "discontinueOrder", "Discontinue order"
    UNDISCONTINUE = "undiscontinueOrder", "Undiscontinue order"


class OutcomeCode(models.TextChoices):
    SAVED_OK = "saved_ok"
    SAVED_WORKLIST_FAILED = "saved_worklist_failed"
    VOID_OK = "void_ok"
    VOID_WORKLIST_FAILED = "void_worklist_failed"
    UNVOID_OK = "unvoid_ok"
    UNVOID_WORKLIST_FAILED = "unvoid_worklist_failed"
    DISCONTINUE_OK = "discontinue_ok"
    DISCONTINUE_WORKLIST_FAILED = "discontinue_worklist_failed"
    UNDISCONTINUE_OK = "undiscontinue_ok"
    UNDISCONTINUE_WORKLIST_FAILED = "undiscontinue_worklist_failed"
    STUDY_PERFORMED = "study_performed"
    NOT_AUTHENTICATED = "not_authenticated"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class CommandOutcome:
    success: bool
    outcome_code: OutcomeCode
    error: Exception | None = None
    order_id: int | None = None

    @property
    def is_ok(self) -> bool:
        return self.success and self.outcome_code.endswith("_ok")

    @property
    def error_message(self) -> str | None:
        return str(self.error) if self.error is not None else None


@dataclass(frozen=True)
class ActionRequest:
    """
    One form submission. Reason and date fields for void/discontinue travel
    on the order payload (void_reason, discontinued_reason, discontinued_date).
    """
    command: OrderCommand
    order: Order
    study: Study
    study_id: int | None = None
    patient_id: UUID | None = None


# A rejected save still leaves the local order in place.
SAVE_FAILURE_STATUSES = frozenset({MwlStatus.SAVE_ERR, MwlStatus.UPDATE_ERR})


def _void(order: Order, payload: Order, actor) -> None:
    OrderService.void_order(order_id=order.pk, reason=payload.void_reason, actor=actor)


def _unvoid(order: Order, payload: Order, actor) -> None:
    OrderService.unvoid_order(order_id=order.pk)


def _discontinue(order: Order, payload: Order, actor) -> None:
    OrderService.discontinue_order(
        order_id=order.pk,
        reason=payload.discontinued_reason,
        discontinued_date=payload.discontinued_date,
        actor=actor,
    )


def _undiscontinue(order: Order, payload: Order, actor) -> None:
    OrderService.undiscontinue_order(order_id=order.pk)


def _needs_void_reason(payload: Order) -> None:
    require_reason("void_reason", payload.void_reason)


def _needs_discontinue_reason(payload: Order) -> None:
    require_reason("discontinued_reason", payload.discontinued_reason)


@dataclass(frozen=True)
class _Gate:
    request: OrderRequest
    ok_status: MwlStatus
    ok_code: OutcomeCode
    failed_code: OutcomeCode
    commit: Callable[[Order, Order, object], None]
    # Runs before the worklist is contacted.
    validate: Callable[[Order], None] | None = None


GATES = {
    OrderCommand.VOID: _Gate(
        request=OrderRequest.VOID_ORDER,
        ok_status=MwlStatus.VOID_OK,
        ok_code=OutcomeCode.VOID_OK,
        failed_code=OutcomeCode.VOID_WORKLIST_FAILED,
        commit=_void,
        validate=_needs_void_reason,
    ),
    OrderCommand.UNVOID: _Gate(
        request=OrderRequest.UNVOID_ORDER,
        ok_status=MwlStatus.UNVOID_OK,
        ok_code=OutcomeCode.UNVOID_OK,
        failed_code=OutcomeCode.UNVOID_WORKLIST_FAILED,
        commit=_unvoid,
    ),
    OrderCommand.DISCONTINUE: _Gate(
        request=OrderRequest.DISCONTINUE_ORDER,
        ok_status=MwlStatus.DISCONTINUE_OK,
        ok_code=OutcomeCode.DISCONTINUE_OK,
        failed_code=OutcomeCode.DISCONTINUE_WORKLIST_FAILED,
        commit=_discontinue,
        validate=_needs_discontinue_reason,
    ),
    OrderCommand.UNDISCONTINUE: _Gate(
        request=OrderRequest.UNDISCONTINUE_ORDER,
        ok_status=MwlStatus.UNDISCONTINUE_OK,
        ok_code=OutcomeCode.UNDISCONTINUE_OK,
        failed_code=OutcomeCode.UNDISCONTINUE_WORKLIST_FAILED,
        commit=_undiscontinue,
    ),
}


class LifecycleCoordinator:
    """
    Runs one order form command against the order store, the study store
    and the worklist gateway, and reports a single outcome.

    Holds no state between calls. Store and gateway failures never escape
    execute(): they end the command and come back as INTERNAL_ERROR with
    the causing exception attached. Steps already committed stay committed.
    """

    def __init__(
        self,
        *,
        capabilities: Capabilities,
        actor=None,
        gateway: WorklistGateway | None = None,
    ) -> None:
        self.capabilities = capabilities
        self.actor = actor
        self._gateway = gateway

    def execute(self, action, order: Order, study: Study) -> CommandOutcome:
        if not self.capabilities.is_authenticated:
            return CommandOutcome(success=False, outcome_code=OutcomeCode.NOT_AUTHENTICATED)

        action = OrderCommand(action)
        try:
            gateway = self._gateway or get_worklist_gateway()
            if action == OrderCommand.SAVE:
                return self._save(gateway, order, study)
            return self._gated(gateway, GATES[action], order)
        except Exception as exc:
            logger.exception("Radiology %s failed for order_id=%s", action.value, order.pk)
            return CommandOutcome(
                success=False,
                outcome_code=OutcomeCode.INTERNAL_ERROR,
                error=exc,
                order_id=order.pk,
            )

    def _save(self, gateway: WorklistGateway, order: Order, study: Study) -> CommandOutcome:
        if study.pk is not None:
            StudyService.ensure_bound(study_id=study.pk, order_id=order.pk)

        order = OrderService.save_order(order=order)

        study.order = order
        study = StudyService.save_study(study=study)
        StudyService.assign_study_instance_uid(study_id=study.pk)

        order = OrderSelector.get_order(order_id=order.pk)
        gateway.notify(StudySelector.get_study_by_order_id(order_id=order.pk), OrderRequest.SAVE_ORDER)

        status = StudySelector.get_study_by_order_id(order_id=order.pk).mwl_status
        if status in SAVE_FAILURE_STATUSES:
            logger.warning("Order %s saved but worklist answered %s", order.pk, status)
            return CommandOutcome(success=True, outcome_code=OutcomeCode.SAVED_WORKLIST_FAILED, order_id=order.pk)
        return CommandOutcome(success=True, outcome_code=OutcomeCode.SAVED_OK, order_id=order.pk)

    def _gated(self, gateway: WorklistGateway, gate: _Gate, payload: Order) -> CommandOutcome:
        if gate.validate is not None:
            gate.validate(payload)
        order = OrderSelector.get_order(order_id=payload.pk)
        gateway.notify(StudySelector.get_study_by_order_id(order_id=order.pk), gate.request)

        status = StudySelector.get_study_by_order_id(order_id=order.pk).mwl_status
        if status != gate.ok_status:
            logger.warning("Worklist answered %s to %s for order %s; order left unchanged", status, gate.request, order.pk)
            return CommandOutcome(success=True, outcome_code=gate.failed_code, order_id=order.pk)

        gate.commit(order, payload, self.actor)
        return CommandOutcome(success=True, outcome_code=gate.ok_code, order_id=order.pk)


def submit(request: ActionRequest, *, user, gateway: WorklistGateway | None = None) -> CommandOutcome:
    """
    Entry point for a form submission: resolves the caller's capabilities
    once, applies role-driven study setup, then runs the command.
    """
    capabilities = Capabilities.for_user(user)
    coordinator = LifecycleCoordinator(capabilities=capabilities, actor=user, gateway=gateway)

    if capabilities.is_authenticated and not StudyService.prepare(
        study=request.study,
        order=request.order,
        capabilities=capabilities,
        actor=user,
        study_id=request.study_id,
    ):
        return CommandOutcome(success=False, outcome_code=OutcomeCode.STUDY_PERFORMED, order_id=request.order.pk)

    return coordinator.execute(request.command, request.order, request.study)
