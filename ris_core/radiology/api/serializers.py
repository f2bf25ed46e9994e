# ris_core/radiology/api/serializers.py
from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from ris_core.orders.models import Order
from ris_core.patients.models import Patient
from ris_core.radiology.lifecycle import ActionRequest, OrderCommand
from ris_core.radiology.models import (
    Modality,
    PerformedProcedureStepStatus,
    RequestedProcedurePriority,
    ScheduledProcedureStepStatus,
    Study,
)


class OrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "id",
            "patient",
            "orderer",
            "instructions",
            "start_date",
            "auto_expire_date",
            "voided",
            "void_reason",
            "date_voided",
            "discontinued",
            "discontinued_reason",
            "discontinued_date",
        ]


class StudySerializer(serializers.ModelSerializer):
    class Meta:
        model = Study
        fields = [
            "id",
            "order",
            "study_instance_uid",
            "modality",
            "priority",
            "scheduler",
            "performing_physician",
            "reading_physician",
            "scheduled_status",
            "performed_status",
            "mwl_status",
        ]


class StudyListSerializer(serializers.ModelSerializer):
    order = OrderSerializer(read_only=True)

    class Meta:
        model = Study
        fields = [
            "id",
            "study_instance_uid",
            "modality",
            "priority",
            "scheduled_status",
            "performed_status",
            "mwl_status",
            "order",
        ]


class RadiologyOrderFormQuerySerializer(serializers.Serializer):
    orderId = serializers.IntegerField(required=False)
    patientId = serializers.UUIDField(required=False)


class OrderPayloadSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(required=False, allow_null=True)
    patient = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all(), required=False, allow_null=True)
    orderer = serializers.PrimaryKeyRelatedField(
        queryset=get_user_model().objects.all(), required=False, allow_null=True
    )
    instructions = serializers.CharField(required=False, allow_blank=True, default="")
    start_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    auto_expire_date = serializers.DateTimeField(required=False, allow_null=True, default=None)

    void_reason = serializers.CharField(required=False, allow_blank=True, default="")
    discontinued_reason = serializers.CharField(required=False, allow_blank=True, default="")
    discontinued_date = serializers.DateTimeField(required=False, allow_null=True, default=None)


class StudyPayloadSerializer(serializers.Serializer):
    modality = serializers.ChoiceField(choices=Modality.choices, required=False, allow_blank=True, default="")
    priority = serializers.ChoiceField(
        choices=RequestedProcedurePriority.choices, required=False, allow_blank=True, default=""
    )
    scheduled_status = serializers.ChoiceField(
        choices=ScheduledProcedureStepStatus.choices, required=False, allow_blank=True, default=""
    )
    performed_status = serializers.ChoiceField(
        choices=PerformedProcedureStepStatus.choices, required=False, allow_blank=True, default=""
    )


class RadiologyOrderSubmitSerializer(serializers.Serializer):
    command = serializers.ChoiceField(choices=OrderCommand.choices)
    study_id = serializers.IntegerField(required=False, allow_null=True)
    patient_id = serializers.UUIDField(required=False, allow_null=True)
    order = OrderPayloadSerializer()
    study = StudyPayloadSerializer(required=False)

    def validate(self, attrs):
        command = attrs["command"]
        order = attrs["order"]

        if command == OrderCommand.SAVE:
            if not order.get("patient"):
                raise serializers.ValidationError({"order": {"patient": "A patient is required to save an order."}})
            return attrs

        if not order.get("order_id"):
            raise serializers.ValidationError({"order": {"order_id": f"{command} needs an existing order."}})
        if command == OrderCommand.VOID and not order.get("void_reason", "").strip():
            raise serializers.ValidationError({"order": {"void_reason": "A reason is required to void an order."}})
        if command == OrderCommand.DISCONTINUE and not order.get("discontinued_reason", "").strip():
            raise serializers.ValidationError(
                {"order": {"discontinued_reason": "A reason is required to discontinue an order."}}
            )
        return attrs

    def build_action_request(self) -> ActionRequest:
        data = self.validated_data

        order_fields = {k: v for k, v in data["order"].items() if v is not None}
        order_id = order_fields.pop("order_id", None)
        order = Order(pk=order_id, **order_fields)

        study_fields = dict(data.get("study") or {})
        study = Study(pk=data.get("study_id"), **study_fields)

        return ActionRequest(
            command=OrderCommand(data["command"]),
            order=order,
            study=study,
            study_id=data.get("study_id"),
            patient_id=data.get("patient_id"),
        )


class CommandOutcomeSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    outcome = serializers.CharField()
    message = serializers.CharField()
    redirect_to = serializers.CharField()
    order_id = serializers.IntegerField(allow_null=True)
