from django.apps import AppConfig


class RadiologyConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ris_core.radiology"
