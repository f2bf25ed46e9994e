# ris_core/radiology/worklist.py
"""
Modality worklist gateways.

A gateway tells the external scheduling system about an order lifecycle
event for one study, then records the result on the study's mwl_status.
One attempt per call; no retries. Transport problems raise
WorklistTransportError, a rejected request is recorded as the "err" status.
"""
from __future__ import annotations

import logging

import httpx
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import models
from django.utils.module_loading import import_string

from ris_core.radiology.models import MwlStatus, Study
from ris_core.radiology.services import StudyService

logger = logging.getLogger(__name__)


class OrderRequest(models.TextChoices):
    SAVE_ORDER = "save_order", "Save order"
    VOID_ORDER = "void_order", "Void order"
    UNVOID_ORDER = "unvoid_order", "Unvoid order"
    DISCONTINUE_ORDER = "discontinue_order", "Discontinue order"
    UNDISCONTINUE_ORDER = "undiscontinue_order", "Undiscontinue order"


class WorklistError(Exception):
    pass


class WorklistTransportError(WorklistError):
    """The worklist could not be reached or did not answer in time."""


# (ok, err) per request kind. SAVE_ORDER is resolved per study, see outcome_statuses().
_REQUEST_STATUSES = {
    OrderRequest.VOID_ORDER: (MwlStatus.VOID_OK, MwlStatus.VOID_ERR),
    OrderRequest.UNVOID_ORDER: (MwlStatus.UNVOID_OK, MwlStatus.UNVOID_ERR),
    OrderRequest.DISCONTINUE_ORDER: (MwlStatus.DISCONTINUE_OK, MwlStatus.DISCONTINUE_ERR),
    OrderRequest.UNDISCONTINUE_ORDER: (MwlStatus.UNDISCONTINUE_OK, MwlStatus.UNDISCONTINUE_ERR),
}

# The worklist has never accepted these studies, so a save creates them there.
_NOT_ON_WORKLIST = (MwlStatus.DEFAULT, MwlStatus.SAVE_ERR)


def is_new_on_worklist(study: Study) -> bool:
    return study.mwl_status in _NOT_ON_WORKLIST


def outcome_statuses(study: Study, request: str) -> tuple[MwlStatus, MwlStatus]:
    request = OrderRequest(request)
    if request == OrderRequest.SAVE_ORDER:
        if is_new_on_worklist(study):
            return MwlStatus.SAVE_OK, MwlStatus.SAVE_ERR
        return MwlStatus.UPDATE_OK, MwlStatus.UPDATE_ERR
    return _REQUEST_STATUSES[request]


class WorklistGateway:
    """
    Base class. Subclasses implement _send() and return whether the
    worklist accepted the request.
    """

    def notify(self, study: Study, request: str) -> MwlStatus:
        ok, err = outcome_statuses(study, request)
        accepted = self._send(study, OrderRequest(request))
        status = ok if accepted else err

        StudyService.record_mwl_status(study_id=study.pk, status=status)
        logger.info("Worklist %s for study_id=%s -> %s", request, study.pk, status)
        return status

    def _send(self, study: Study, request: OrderRequest) -> bool:
        raise NotImplementedError


class LocalWorklistGateway(WorklistGateway):
    """
    In-process stand-in for a scheduler: answers every request the same way.
    Keeps what it was sent so callers can inspect it.
    """

    def __init__(self, *, accept: bool = True) -> None:
        self.accept = accept
        self.sent: list[tuple[int, OrderRequest]] = []

    def _send(self, study: Study, request: OrderRequest) -> bool:
        self.sent.append((study.pk, request))
        return self.accept


class HttpWorklistGateway(WorklistGateway):
    """
    Posts the order to a worklist broker over HTTP. Any 2xx answer means
    the worklist accepted it; other answers are rejections.
    """

    # HL7 order control codes
    NEW_ORDER = "NW"
    CHANGE_ORDER = "XO"
    CANCEL_ORDER = "CA"
    DISCONTINUE_ORDER = "DC"

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not base_url:
            raise ImproperlyConfigured("HttpWorklistGateway requires base_url")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    def _order_control(self, study: Study, request: OrderRequest) -> str:
        if request == OrderRequest.SAVE_ORDER:
            return self.NEW_ORDER if is_new_on_worklist(study) else self.CHANGE_ORDER
        if request == OrderRequest.VOID_ORDER:
            return self.CANCEL_ORDER
        if request == OrderRequest.DISCONTINUE_ORDER:
            return self.DISCONTINUE_ORDER
        # unvoid / undiscontinue put the order back on the worklist
        return self.NEW_ORDER

    def build_payload(self, study: Study, request: OrderRequest) -> dict:
        order = study.order
        patient = order.patient
        return {
            "order_control": self._order_control(study, request),
            "request": request.value,
            "study_instance_uid": study.study_instance_uid,
            "accession_number": str(order.pk),
            "patient": {
                "id": str(patient.pk),
                "mrn": patient.mrn,
                "name": patient.full_name,
                "date_of_birth": patient.date_of_birth.isoformat() if patient.date_of_birth else None,
                "gender": patient.gender,
            },
            "modality": study.modality,
            "priority": study.priority,
            "scheduled_start": order.start_date.isoformat() if order.start_date else None,
            "instructions": order.instructions,
        }

    def _post(self, payload: dict) -> httpx.Response:
        url = f"{self._base_url}/orders"
        if self._client is not None:
            return self._client.post(url, json=payload, timeout=self._timeout)
        with httpx.Client(timeout=self._timeout) as client:
            return client.post(url, json=payload)

    def _send(self, study: Study, request: OrderRequest) -> bool:
        payload = self.build_payload(study, request)
        try:
            response = self._post(payload)
        except httpx.HTTPError as exc:
            logger.warning("Worklist unreachable for study_id=%s: %s", study.pk, exc)
            raise WorklistTransportError(f"Worklist request failed: {exc}") from exc

        if response.is_success:
            return True

        logger.warning(
            "Worklist rejected %s for study_id=%s with HTTP %s",
            request.value,
            study.pk,
            response.status_code,
        )
        return False


def get_worklist_gateway() -> WorklistGateway:
    """
    Build the gateway named by settings.RADIOLOGY_WORKLIST:
      {"BACKEND": "<dotted path>", "OPTIONS": {...constructor kwargs}}
    """
    config = getattr(settings, "RADIOLOGY_WORKLIST", None) or {}
    backend = config.get("BACKEND")
    if not backend:
        raise ImproperlyConfigured("RADIOLOGY_WORKLIST['BACKEND'] is not set")
    return import_string(backend)(**(config.get("OPTIONS") or {}))
