# ris_core/radiology/tests/test_radiology_order_form_api.py
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from ris_core.orders.models import Order
from ris_core.radiology.models import MwlStatus, Study

pytestmark = pytest.mark.django_db

LIST_URL = "/api/v1/radiology/orders/"
FORM_URL = "/api/v1/radiology/orders/form/"


def _save_payload(patient, **extra):
    payload = {
        "command": "saveOrder",
        "order": {"patient": str(patient.id), "instructions": "CT chest with contrast"},
        "study": {"modality": "CT", "priority": "HIGH"},
    }
    payload.update(extra)
    return payload


def test_save_redirects_to_order_list(api_client, patient):
    res = api_client.post(FORM_URL, _save_payload(patient), format="json")
    assert res.status_code == 200, res.content

    body = res.json()
    assert body["success"] is True
    assert body["outcome"] == "saved_ok"
    assert body["message"] == "Order.saved"
    assert body["redirect_to"] == LIST_URL

    study = Study.objects.get(order_id=body["order_id"])
    assert study.mwl_status == MwlStatus.SAVE_OK
    assert study.study_instance_uid.endswith(str(study.pk))


def test_save_from_patient_dashboard_redirects_back(api_client, patient):
    res = api_client.post(FORM_URL, _save_payload(patient, patient_id=str(patient.id)), format="json")
    assert res.status_code == 200
    assert res.json()["redirect_to"] == f"/patients/{patient.id}/dashboard/"


def test_worklist_failure_rerenders_with_message(api_client, patient, settings):
    settings.RADIOLOGY_WORKLIST = {
        "BACKEND": "ris_core.radiology.worklist.LocalWorklistGateway",
        "OPTIONS": {"accept": False},
    }

    res = api_client.post(FORM_URL, _save_payload(patient), format="json")
    assert res.status_code == 409

    err = res.json()["error"]
    assert err["code"] == "saved_worklist_failed"
    assert err["message"] == "radiology.savedFailWorklist"
    assert "request_id" in err

    details = err["details"]
    assert details["success"] is True
    assert details["order"]["patient"] == str(patient.id)
    assert details["study"]["mwl_status"] == MwlStatus.SAVE_ERR
    # the order was kept
    assert Order.objects.filter(id=details["order_id"]).exists()


def test_void_via_form(api_client, saved_order):
    payload = {"command": "voidOrder", "order": {"order_id": saved_order.pk, "void_reason": "Duplicate order"}}

    res = api_client.post(FORM_URL, payload, format="json")
    assert res.status_code == 200
    assert res.json()["outcome"] == "void_ok"

    saved_order.refresh_from_db()
    assert saved_order.voided is True
    assert saved_order.void_reason == "Duplicate order"


def test_rejected_discontinue_leaves_order_active(api_client, saved_order, settings):
    settings.RADIOLOGY_WORKLIST = {
        "BACKEND": "ris_core.radiology.worklist.LocalWorklistGateway",
        "OPTIONS": {"accept": False},
    }
    payload = {
        "command": "discontinueOrder",
        "order": {"order_id": saved_order.pk, "discontinued_reason": "Patient discharged"},
    }

    res = api_client.post(FORM_URL, payload, format="json")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "discontinue_worklist_failed"
    assert res.json()["error"]["message"] == "radiology.failWorklist"

    saved_order.refresh_from_db()
    assert saved_order.discontinued is False


def test_internal_error_rerenders_with_500(api_client, saved_order, settings):
    settings.RADIOLOGY_WORKLIST = {"BACKEND": "ris_core.radiology.worklist.NoSuchGateway"}
    payload = {"command": "voidOrder", "order": {"order_id": saved_order.pk, "void_reason": "Duplicate"}}

    res = api_client.post(FORM_URL, payload, format="json")
    assert res.status_code == 500

    err = res.json()["error"]
    assert err["code"] == "internal_error"
    assert err["details"]["message_key"] == "radiology.internalError"
    assert err["details"]["order"]["id"] == saved_order.pk

    saved_order.refresh_from_db()
    assert saved_order.voided is False


def test_void_requires_reason(api_client, saved_order):
    payload = {"command": "voidOrder", "order": {"order_id": saved_order.pk}}

    res = api_client.post(FORM_URL, payload, format="json")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"


def test_lifecycle_command_requires_order_id(api_client):
    res = api_client.post(FORM_URL, {"command": "unvoidOrder", "order": {}}, format="json")
    assert res.status_code == 400


def test_unknown_study_is_404(api_client, saved_order):
    payload = _save_payload(saved_order.patient, study_id=999999)
    payload["order"]["order_id"] = saved_order.pk

    res = api_client.post(FORM_URL, payload, format="json")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "not_found"


def test_scheduler_cannot_take_performed_study(scheduler_user, saved_study):
    Study.objects.filter(pk=saved_study.pk).update(performed_status="COMPLETED")
    client = APIClient()
    client.force_authenticate(user=scheduler_user)
    payload = _save_payload(saved_study.order.patient, study_id=saved_study.pk)
    payload["order"]["order_id"] = saved_study.order_id

    res = client.post(FORM_URL, payload, format="json")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "study_performed"


def test_readonly_user_cannot_submit(saved_order):
    readonly = get_user_model().objects.create_user(username="viewer", password="x")
    client = APIClient()
    client.force_authenticate(user=readonly)

    res = client.post(FORM_URL, {"command": "unvoidOrder", "order": {"order_id": saved_order.pk}}, format="json")
    assert res.status_code == 403

    # but can still read
    assert client.get(LIST_URL).status_code == 200


def test_form_for_new_order_prefills_referring_physician(referring_user, patient):
    client = APIClient()
    client.force_authenticate(user=referring_user)

    res = client.get(FORM_URL, {"patientId": str(patient.id)})
    assert res.status_code == 200

    body = res.json()
    assert body["order"]["id"] is None
    assert body["order"]["patient"] == str(patient.id)
    assert body["order"]["orderer"] == referring_user.pk
    assert body["patient_id"] == str(patient.id)
    assert body["capabilities"]["referring"] is True
    assert body["capabilities"]["super"] is False


def test_form_for_existing_order(api_client, saved_study):
    res = api_client.get(FORM_URL, {"orderId": saved_study.order_id})
    assert res.status_code == 200

    body = res.json()
    assert body["order"]["id"] == saved_study.order_id
    assert body["study"]["study_instance_uid"] == saved_study.study_instance_uid
    assert body["capabilities"]["super"] is True


def test_form_for_missing_order_is_404(api_client):
    res = api_client.get(FORM_URL, {"orderId": 424242})
    assert res.status_code == 404


def test_list_filters_by_mwl_status(api_client, saved_study, patient):
    other = Order.objects.create(patient=patient)
    Study.objects.create(order=other, modality="MR", mwl_status=MwlStatus.VOID_ERR)

    res = api_client.get(LIST_URL, {"mwl_status": "void_err"})
    assert res.status_code == 200

    body = res.json()
    assert body["count"] == 1
    assert body["results"][0]["order"]["id"] == other.pk


def test_list_rejects_unknown_filter_value(api_client):
    res = api_client.get(LIST_URL, {"mwl_status": "bogus"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"


def test_bearer_token_authenticates(user, saved_study):
    client = APIClient()
    access = str(RefreshToken.for_user(user).access_token)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    res = client.get(LIST_URL)
    assert res.status_code == 200
    assert res.json()["count"] == 1


def test_anonymous_request_is_401():
    res = APIClient().post(FORM_URL, {"command": "saveOrder", "order": {}}, format="json")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "not_authenticated"


def test_study_of_another_order_is_not_rebound(api_client, saved_study):
    payload = _save_payload(saved_study.order.patient, study_id=saved_study.pk)

    res = api_client.post(FORM_URL, payload, format="json")
    assert res.status_code == 500
    assert res.json()["error"]["code"] == "internal_error"

    saved_study.refresh_from_db()
    assert Order.objects.count() == 1
    assert saved_study.order.study == saved_study
