# ris_core/radiology/api/views.py
from __future__ import annotations

from django.urls import reverse
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.response import Response

from ris_core.common.api.exceptions import build_error_envelope
from ris_core.common.permissions import Capabilities, RadiologyOrderPermission
from ris_core.orders.selectors import OrderSelector
from ris_core.patients.models import Patient
from ris_core.radiology.api.filters import StudyFilter
from ris_core.radiology.api.serializers import (
    CommandOutcomeSerializer,
    OrderSerializer,
    RadiologyOrderFormQuerySerializer,
    RadiologyOrderSubmitSerializer,
    StudyListSerializer,
    StudySerializer,
)
from ris_core.radiology.lifecycle import CommandOutcome, OutcomeCode
from ris_core.radiology.lifecycle import submit as submit_command
from ris_core.radiology.models import Study
from ris_core.radiology.selectors import StudySelector
from ris_core.radiology.services import RadiologyOrderFormService

PATIENT_DASHBOARD_PATH = "/patients/{patient_id}/dashboard/"

# Message key per outcome; the client localizes it.
OUTCOME_MESSAGES = {
    OutcomeCode.SAVED_OK: "Order.saved",
    OutcomeCode.SAVED_WORKLIST_FAILED: "radiology.savedFailWorklist",
    OutcomeCode.VOID_OK: "Order.voidedSuccessfully",
    OutcomeCode.VOID_WORKLIST_FAILED: "radiology.failWorklist",
    OutcomeCode.UNVOID_OK: "Order.unvoidedSuccessfully",
    OutcomeCode.UNVOID_WORKLIST_FAILED: "radiology.failWorklist",
    OutcomeCode.DISCONTINUE_OK: "Order.discontinuedSuccessfully",
    OutcomeCode.DISCONTINUE_WORKLIST_FAILED: "radiology.failWorklist",
    OutcomeCode.UNDISCONTINUE_OK: "Order.undiscontinuedSuccessfully",
    OutcomeCode.UNDISCONTINUE_WORKLIST_FAILED: "radiology.failWorklist",
    OutcomeCode.STUDY_PERFORMED: "radiology.studyPerformed",
    OutcomeCode.NOT_AUTHENTICATED: "radiology.notAuthenticated",
    OutcomeCode.INTERNAL_ERROR: "radiology.internalError",
}

# HTTP status when the form has to be shown again; redirects are always 200.
RERENDER_STATUS = {
    OutcomeCode.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    OutcomeCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def redirect_target(patient_id=None) -> str:
    if patient_id is None:
        return reverse("radiology-orders-list")
    return PATIENT_DASHBOARD_PATH.format(patient_id=patient_id)


class RadiologyOrderViewSet(viewsets.GenericViewSet):
    """
    Thin API layer over the radiology order form:
    - list: studies with their orders (filterable)
    - form (GET): what the order form starts with
    - form (POST): run one form command and map the outcome to a
      redirect or a re-render
    """

    permission_classes = [RadiologyOrderPermission]
    serializer_class = StudyListSerializer
    queryset = Study.objects.none()

    @extend_schema(
        responses={200: StudyListSerializer(many=True)},
        tags=["Radiology"],
        parameters=[
            OpenApiParameter(name="mwl_status", location=OpenApiParameter.QUERY, required=False, type=str),
            OpenApiParameter(name="modality", location=OpenApiParameter.QUERY, required=False, type=str),
            OpenApiParameter(name="patient", location=OpenApiParameter.QUERY, required=False, type=str),
            OpenApiParameter(name="voided", location=OpenApiParameter.QUERY, required=False, type=bool),
            OpenApiParameter(name="discontinued", location=OpenApiParameter.QUERY, required=False, type=bool),
        ],
        operation_id="v1_radiology_orders_list",
    )
    def list(self, request):
        filterset = StudyFilter(request.query_params, queryset=StudySelector.list_studies(), request=request)
        if not filterset.is_valid():
            raise DRFValidationError(filterset.errors)
        page = self.paginate_queryset(filterset.qs)
        return self.get_paginated_response(StudyListSerializer(page, many=True).data)

    @extend_schema(
        parameters=[RadiologyOrderFormQuerySerializer],
        tags=["Radiology"],
        operation_id="v1_radiology_orders_form",
    )
    @action(detail=False, methods=["get"], url_path="form")
    def form(self, request):
        params = RadiologyOrderFormQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        patient_id = params.validated_data.get("patientId")

        capabilities = Capabilities.for_user(request.user)
        try:
            order, study = RadiologyOrderFormService.initial_form(
                order_id=params.validated_data.get("orderId"),
                patient_id=patient_id,
                user=request.user,
                capabilities=capabilities,
            )
        except OrderSelector.NotFound:
            raise NotFound("Order not found.")
        except Patient.DoesNotExist:
            raise NotFound("Patient not found.")

        return Response(
            {
                "order": OrderSerializer(order).data,
                "study": StudySerializer(study).data,
                "patient_id": str(patient_id) if patient_id else None,
                "capabilities": capabilities.as_flags(),
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        request=RadiologyOrderSubmitSerializer,
        responses={200: CommandOutcomeSerializer},
        tags=["Radiology"],
        operation_id="v1_radiology_orders_submit",
    )
    @form.mapping.post
    def submit(self, request):
        ser = RadiologyOrderSubmitSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        action_request = ser.build_action_request()

        try:
            outcome = submit_command(action_request, user=request.user)
        except StudySelector.NotFound:
            raise NotFound("Study not found.")

        return self._outcome_response(request, outcome, patient_id=action_request.patient_id)

    def _outcome_response(self, request, outcome: CommandOutcome, *, patient_id=None) -> Response:
        message = OUTCOME_MESSAGES[outcome.outcome_code]

        if outcome.is_ok:
            return Response(
                {
                    "success": True,
                    "outcome": outcome.outcome_code.value,
                    "message": message,
                    "redirect_to": redirect_target(patient_id),
                    "order_id": outcome.order_id,
                },
                status=status.HTTP_200_OK,
            )

        details = {"success": outcome.success, "message_key": message, "order_id": outcome.order_id}
        if outcome.order_id is not None:
            details.update(self._form_state(outcome.order_id))

        return Response(
            build_error_envelope(
                request=request,
                code=outcome.outcome_code.value,
                message=outcome.error_message or message,
                details=details,
            ),
            status=RERENDER_STATUS.get(outcome.outcome_code, status.HTTP_409_CONFLICT),
        )

    @staticmethod
    def _form_state(order_id) -> dict:
        try:
            order = OrderSelector.get_order(order_id=order_id)
        except OrderSelector.NotFound:
            return {}
        state = {"order": OrderSerializer(order).data}
        try:
            state["study"] = StudySerializer(StudySelector.get_study_by_order_id(order_id=order_id)).data
        except StudySelector.NotFound:
            pass
        return state
