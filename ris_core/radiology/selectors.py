# ris_core/radiology/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from ris_core.radiology.models import Study


class StudySelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def get_study(*, study_id) -> Study:
        try:
            return Study.objects.select_related("order").get(id=study_id)
        except Study.DoesNotExist:
            raise StudySelector.NotFound(f"Study {study_id} does not exist.")

    @staticmethod
    def get_study_by_order_id(*, order_id) -> Study:
        try:
            return Study.objects.select_related("order").get(order_id=order_id)
        except Study.DoesNotExist:
            raise StudySelector.NotFound(f"No study for order {order_id}.")

    @staticmethod
    def list_studies() -> QuerySet[Study]:
        return (
            Study.objects.select_related("order", "order__patient", "order__orderer")
            .order_by("-created_at")
        )
