# ris_core/radiology/api/filters.py
from __future__ import annotations

import django_filters

from ris_core.radiology.models import Modality, MwlStatus, Study


class StudyFilter(django_filters.FilterSet):
    mwl_status = django_filters.ChoiceFilter(choices=MwlStatus.choices)
    modality = django_filters.ChoiceFilter(choices=Modality.choices)
    patient = django_filters.UUIDFilter(field_name="order__patient_id")
    voided = django_filters.BooleanFilter(field_name="order__voided")
    discontinued = django_filters.BooleanFilter(field_name="order__discontinued")

    class Meta:
        model = Study
        fields = ["mwl_status", "modality", "patient", "voided", "discontinued"]
