# config/settings/test.py
from .base import *  # noqa

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

RADIOLOGY_STUDY_UID_PREFIX = "1.2.826.0.1.3680043.8.2186.1."

RADIOLOGY_WORKLIST = {
    "BACKEND": "ris_core.radiology.worklist.LocalWorklistGateway",
    "OPTIONS": {"accept": True},
}
