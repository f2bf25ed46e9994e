# ris_core/conftest.py
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from ris_core.common.permissions import (
    ROLE_ADMIN,
    ROLE_PERFORMING_PHYSICIAN,
    ROLE_READING_PHYSICIAN,
    ROLE_REFERRING_PHYSICIAN,
    ROLE_SCHEDULER,
)
from ris_core.orders.models import Order
from ris_core.patients.models import Patient
from ris_core.radiology.models import MwlStatus, Study
from ris_core.radiology.worklist import LocalWorklistGateway


def make_user(username, *roles):
    User = get_user_model()
    user = User.objects.create_user(username=username, password="testpass", is_active=True)
    for role in roles:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user


@pytest.fixture
def user(db):
    """Admin user: no clinical role, so the form shows every section."""
    return make_user("testuser", ROLE_ADMIN)


@pytest.fixture
def referring_user(db):
    return make_user("referrer", ROLE_REFERRING_PHYSICIAN)


@pytest.fixture
def scheduler_user(db):
    return make_user("scheduler", ROLE_SCHEDULER)


@pytest.fixture
def performing_user(db):
    return make_user("performer", ROLE_PERFORMING_PHYSICIAN)


@pytest.fixture
def reading_user(db):
    return make_user("reader", ROLE_READING_PHYSICIAN)


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def patient(db):
    return Patient.objects.create(full_name="Test Patient", mrn="MRN-TEST-001")


@pytest.fixture
def accepting_gateway():
    return LocalWorklistGateway(accept=True)


@pytest.fixture
def rejecting_gateway():
    return LocalWorklistGateway(accept=False)


@pytest.fixture
def saved_study(patient, user):
    """
    An order already on the worklist: saved, UID assigned, mwl_status save_ok.
    Built directly so tests start from a known store state.
    """
    order = Order.objects.create(patient=patient, orderer=user, instructions="Chest PA")
    return Study.objects.create(
        order=order,
        study_instance_uid=f"1.2.826.0.1.3680043.8.2186.1.{order.pk}",
        modality="CR",
        priority="ROUTINE",
        mwl_status=MwlStatus.SAVE_OK,
    )


@pytest.fixture
def saved_order(saved_study):
    return saved_study.order
