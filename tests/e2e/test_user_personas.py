"""
E2E journeys for the portal's user personas.

The remote society API is the in-process mock server (mock/portal_server),
so these run without network access but exercise every layer: host routes,
services, the HTTP client and the persisted session.

User personas:
- tenant@example.com: invited PG tenant who onboards across an app restart
- owner@example.com: flat owner paying maintenance after a declined card
- officer@example.com: officer working the complaint queue
"""

import json

import pytest
from fastapi.testclient import TestClient
from mock.portal_server.main import VALID_SIGNATURE, MockRemote
from society_portal.api.main import create_app


@pytest.mark.integration
def test_tenant_resumes_onboarding_after_restart(client: TestClient, login, portal_client, db_factory):
    """
    Tenant finishes eKYC, closes the app, and reopens it.
    Expected: session restored, wizard resumes at AGREEMENT, onboarding completes
    """
    login()
    client.get("/v1/onboarding")
    client.post("/v1/onboarding/acknowledge")
    response = client.post(
        "/v1/onboarding/ekyc",
        data={
            "full_name": "Asha Rao",
            "date_of_birth": "1998-04-12",
            "gender": "FEMALE",
            "phone": "+91 98765 43210",
            "email": "tenant@example.com",
            "permanent_address": "12 MG Road, Bengaluru",
            "id_type": "PAN",
            "id_number": "ABCDE1234F",
        },
    )
    assert response.json()["current_step"] == "AGREEMENT"

    restarted = create_app(client=portal_client, db_factory=db_factory)
    with TestClient(restarted) as reopened:
        assert reopened.get("/v1/session").json()["authenticated"] is True
        assert reopened.get("/v1/onboarding").json()["current_step"] == "AGREEMENT"

        response = reopened.post(
            "/v1/onboarding/agreement/accept",
            json={
                "otp": "123456",
                "consent_flags": {
                    "personal_details_correct": True,
                    "pg_details_agreed": True,
                    "kyc_authorized": True,
                    "agreement_accepted": True,
                },
            },
        )
        assert response.json()["redirect_to"] == "/profile"
        assert reopened.get("/v1/session").json()["user"]["onboarding_status"] == "completed"


@pytest.mark.integration
def test_owner_retries_after_declined_card(client: TestClient, login, remote: MockRemote):
    """
    Owner's first attempt is declined by the gateway, the second succeeds.
    Expected: one error notice, then a verified payment and no balance left
    """
    login("owner@example.com")
    client.get("/v1/invoices/inv_due")

    client.post("/v1/invoices/inv_due/pay")
    failed = {"event": "FAILED", "payload": {"code": "BAD_REQUEST_ERROR", "description": "Card declined by bank"}}
    client.post("/v1/invoices/inv_due/checkout/messages", content=json.dumps(failed))

    view = client.get("/v1/invoices/inv_due").json()
    assert view["can_pay"] is True
    assert view["notices"] == [{"level": "error", "title": "Payment failed", "message": "Card declined by bank"}]

    started = client.post("/v1/invoices/inv_due/pay").json()
    success = {
        "event": "SUCCESS",
        "payload": {
            "razorpay_payment_id": "pay_retry",
            "razorpay_order_id": started["order_id"],
            "razorpay_signature": VALID_SIGNATURE,
        },
    }
    client.post("/v1/invoices/inv_due/checkout/messages", content=json.dumps(success))

    view = client.get("/v1/invoices/inv_due").json()
    assert view["invoice"]["outstanding"] == 0
    assert view["invoice"]["payments"][0]["reference"] == "pay_retry"
    assert len(remote.orders) == 2


@pytest.mark.integration
def test_officer_works_complaint_queue(client: TestClient, login):
    """
    Officer filters the queue, takes a complaint and resolves it.
    Expected: filtered list narrows, status change is visible on refetch
    """
    login("officer@example.com")

    electrical = client.get("/v1/complaints", params={"category": "ELECTRICAL"}).json()
    assert [c["id"] for c in electrical] == ["c_2"]

    assert client.post("/v1/complaints/c_2/assign").status_code == 200
    client.patch("/v1/complaints/c_2/status", json={"status": "RESOLVED"})

    assert client.get("/v1/complaints/c_2").json()["status"] == "RESOLVED"
    assert client.get("/v1/complaints", params={"status": "OPEN"}).json()[0]["id"] == "c_1"
