"""Unit tests for the remote API client"""

import json

import httpx
import pytest
from society_portal.domain.exceptions import AuthenticationError, RemoteAPIError
from society_portal.domain.models import InvoiceStatus, KycForm, UploadedFile
from society_portal.infrastructure.clients.portal import PortalClient, parse_complaint, parse_invoice
from society_portal.infrastructure.observability.context import request_id_var


class FakeSession:
    """Minimal session owner recording invalidations"""

    def __init__(self, token="tok_1"):
        self.token = token
        self.invalidated = 0

    async def invalidate(self):
        self.invalidated += 1
        self.token = None


def make_client(handler, session=None) -> PortalClient:
    client = PortalClient(base_url="http://remote.test/api", transport=httpx.MockTransport(handler))
    if session is not None:
        client.bind_session(session)
    return client


async def test_bearer_token_attached():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"id": "u1", "name": "Asha", "email": "a@example.com", "role": "PG_TENANT"})

    user = await make_client(handler, FakeSession("tok_abc")).get_me()

    assert seen["auth"] == "Bearer tok_abc"
    assert seen["url"] == "http://remote.test/api/me"
    assert user.name == "Asha"


async def test_no_authorization_header_without_session():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"token": "t", "user": {}})

    await make_client(handler).login("a@example.com", "pw")
    assert seen["auth"] is None


async def test_request_id_forwarded_when_serving_a_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("x-request-id"))
        return httpx.Response(200, json={"token": "t", "user": {}})

    client = make_client(handler)
    token = request_id_var.set("req-42")
    try:
        await client.login("a@example.com", "pw")
    finally:
        request_id_var.reset(token)
    await client.login("a@example.com", "pw")

    assert seen == ["req-42", None]


@pytest.mark.parametrize("body", [[{"message": "ok"}], "done"])
async def test_document_generation_rejects_non_object_body(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(RemoteAPIError):
        await make_client(handler, FakeSession()).generate_documents()


@pytest.mark.parametrize("status_code", [401, 403])
async def test_auth_failure_invalidates_session(status_code):
    session = FakeSession()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"error": "Token expired"})

    with pytest.raises(AuthenticationError) as exc_info:
        await make_client(handler, session).get_announcements()

    assert session.invalidated == 1
    assert exc_info.value.status_code == status_code
    assert str(exc_info.value) == "Token expired"


async def test_other_errors_keep_session():
    session = FakeSession()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "Database unavailable"})

    with pytest.raises(RemoteAPIError) as exc_info:
        await make_client(handler, session).get_events()

    assert not isinstance(exc_info.value, AuthenticationError)
    assert exc_info.value.status_code == 500
    assert str(exc_info.value) == "Database unavailable"
    assert session.invalidated == 0


async def test_error_without_body_uses_status_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    with pytest.raises(RemoteAPIError, match="Request failed with status 502"):
        await make_client(handler).get_events()


async def test_network_failure_is_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RemoteAPIError, match="Unable to reach the server") as exc_info:
        await make_client(handler).get_events()
    assert exc_info.value.status_code is None


async def test_timeout_is_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RemoteAPIError, match="timed out"):
        await make_client(handler).get_events()


async def test_empty_query_params_are_dropped():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["query"] = dict(request.url.params)
        return httpx.Response(200, json={"items": []})

    await make_client(handler).get_my_invoices(page=2, status=None)
    assert seen["query"] == {"page": "2"}


async def test_invoice_detail_merges_totals_and_payments():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "invoice": {"_id": "inv_1", "amount": 2500, "status": "partially_paid", "dueDate": "2026-09-10T00:00:00Z"},
                "payments": [{"_id": "p1", "amount": 1000, "paidAt": "2026-09-01"}],
                "totalPaid": 1000,
                "outstanding": 1500,
            },
        )

    invoice = await make_client(handler).get_my_invoice("inv_1")

    assert invoice.id == "inv_1"
    assert invoice.total_paid == 1000
    assert invoice.outstanding == 1500
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID
    assert invoice.due_date.isoformat() == "2026-09-10"
    assert invoice.payments[0].amount == 1000


async def test_verify_payment_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    await make_client(handler).verify_invoice_payment("pay_1", "order_1", "sig")

    assert seen["path"] == "/api/billing/verify-payment"
    assert seen["body"] == {
        "razorpayPaymentId": "pay_1",
        "razorpayOrderId": "order_1",
        "razorpaySignature": "sig",
    }


async def test_kyc_submission_is_multipart_with_files():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = request.read()
        return httpx.Response(200, json={"success": True})

    form = KycForm(
        full_name="Asha Rao",
        date_of_birth="1998-04-12",
        id_number="234567890123",
        selfie=UploadedFile(filename="me.jpg", content=b"JPEGDATA"),
    )
    await make_client(handler).submit_tenant_kyc(form)

    assert seen["content_type"].startswith("multipart/form-data")
    assert b'name="dateOfBirth"' in seen["body"]
    assert b'name="selfie"; filename="me.jpg"' in seen["body"]
    assert b"JPEGDATA" in seen["body"]
    assert b'name="occupation"' not in seen["body"]


def test_parse_invoice_derives_outstanding():
    invoice = parse_invoice({"id": "inv_2", "amount": 800, "totalPaid": 300, "status": "unknown"})
    assert invoice.outstanding == 500
    assert invoice.status == InvoiceStatus.PENDING


def test_parse_complaint_normalizes_status():
    complaint = parse_complaint({"_id": "c1", "title": "Tap", "status": "in_progress"})
    assert complaint.id == "c1"
    assert complaint.status == "IN_PROGRESS"
