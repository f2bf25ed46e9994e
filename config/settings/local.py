# config/settings/local.py
from .base import *  # noqa

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"  # noqa: F405

if os.getenv("DB_ENGINE", "sqlite") == "sqlite":  # noqa: F405
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
        }
    }

# No scheduler around on a dev box: accept every notification locally.
if not os.getenv("RADIOLOGY_WORKLIST_URL"):  # noqa: F405
    RADIOLOGY_WORKLIST = {
        "BACKEND": "ris_core.radiology.worklist.LocalWorklistGateway",
        "OPTIONS": {"accept": True},
    }
