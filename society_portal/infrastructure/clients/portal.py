"""Remote society API HTTP client"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

import httpx

from society_portal.config import settings
from society_portal.domain.exceptions import AuthenticationError, RemoteAPIError
from society_portal.domain.models import (
    Complaint,
    DocumentGenerationResult,
    EmailStatus,
    FinancialTerms,
    Invoice,
    InvoiceStatus,
    KycForm,
    OnboardingContext,
    Payment,
    PropertyDetails,
    RoomDetails,
    UserSummary,
)
from society_portal.infrastructure.observability.context import request_id_var
from society_portal.infrastructure.observability.metrics import (
    record_remote_failure,
    remote_api_latency_histogram,
)

logger = logging.getLogger(__name__)

AUTH_FAILURE_STATUSES = (401, 403)


class SessionHandle(Protocol):
    """What the client needs from the session owner"""

    @property
    def token(self) -> Optional[str]: ...

    async def invalidate(self) -> None: ...


def _clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop empty query values the way the remote API expects"""
    return {key: value for key, value in (params or {}).items() if value not in (None, "")}


def _error_message(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and (body.get("error") or body.get("message")):
            return str(body.get("error") or body.get("message"))
    text = response.text.strip()
    return text or f"Request failed with status {response.status_code}"


class PortalClient:
    """
    Client for the remote society/PG API.

    Attaches the bearer token from the bound session to every call and is the
    single place where a 401/403 response clears that session.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport
        self._session: Optional[SessionHandle] = None

    def bind_session(self, session: SessionHandle) -> None:
        self._session = session

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        expect: str = "json",
    ) -> Any:
        """
        Send a request and return the decoded body.

        Args:
            expect: "json" (default), "text" for raw HTML, "bytes" for downloads

        Raises:
            AuthenticationError: On 401/403, after the bound session is cleared
            RemoteAPIError: On timeouts, network failures, other non-2xx responses
        """
        headers = {}
        token = self._session.token if self._session else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        request_id = request_id_var.get()
        if request_id:
            headers["X-Request-ID"] = request_id

        try:
            with remote_api_latency_histogram.labels(method=method).time():
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.request(
                        method,
                        f"{self.base_url}{path}",
                        json=json,
                        params=_clean_params(params),
                        data=data,
                        files=files,
                        headers=headers,
                    )
        except httpx.TimeoutException as e:
            record_remote_failure(None)
            raise RemoteAPIError(f"Request timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            record_remote_failure(None)
            raise RemoteAPIError(f"Unable to reach the server: {e}") from e

        if response.is_error:
            message = _error_message(response)
            record_remote_failure(response.status_code)
            logger.warning(
                "Remote API error",
                extra={"path": path, "status_code": response.status_code, "error": message},
            )
            if response.status_code in AUTH_FAILURE_STATUSES:
                if self._session is not None:
                    await self._session.invalidate()
                raise AuthenticationError(message, response.status_code)
            raise RemoteAPIError(message, response.status_code)

        if expect == "text":
            return response.text
        if expect == "bytes":
            return response.content
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteAPIError(f"Invalid JSON response from {path}") from e

    # Auth

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self.request("POST", "/auth/login", json={"email": email, "password": password})

    async def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return await self.request("POST", "/auth/register", json={"name": name, "email": email, "password": password})

    async def get_me(self) -> UserSummary:
        return UserSummary.from_api(await self.request("GET", "/me"))

    # Profile

    async def get_profile(self) -> Dict[str, Any]:
        return await self.request("GET", "/profile")

    async def update_profile(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PATCH", "/profile", json=changes)

    # Complaints

    async def create_complaint(
        self, title: str, description: str, category: str, flat_id: str | None = None
    ) -> Complaint:
        body: Dict[str, Any] = {"title": title, "description": description, "category": category}
        if flat_id:
            body["flatId"] = flat_id
        return parse_complaint(await self.request("POST", "/complaints", json=body))

    async def get_my_complaints(self) -> List[Complaint]:
        return [parse_complaint(item) for item in _items(await self.request("GET", "/complaints/my"))]

    async def get_complaint(self, complaint_id: str) -> Complaint:
        return parse_complaint(await self.request("GET", f"/complaints/{complaint_id}"))

    async def get_officer_complaints(self) -> List[Complaint]:
        return [parse_complaint(item) for item in _items(await self.request("GET", "/officer/complaints"))]

    async def update_complaint_status(self, complaint_id: str, status: str) -> Complaint:
        data = await self.request("PATCH", f"/officer/complaints/{complaint_id}/status", json={"status": status})
        return parse_complaint(data)

    async def assign_complaint_to_me(self, complaint_id: str) -> Complaint:
        return parse_complaint(await self.request("PATCH", f"/officer/complaints/{complaint_id}/assign"))

    # Community

    async def get_announcements(self) -> List[Dict[str, Any]]:
        return _items(await self.request("GET", "/announcements"))

    async def get_events(self) -> List[Dict[str, Any]]:
        return _items(await self.request("GET", "/events"))

    async def set_event_participation(self, event_id: str, status: str = "GOING") -> Dict[str, Any]:
        """RSVP to an event (INTERESTED | GOING)"""
        return await self.request("POST", f"/events/{event_id}/participation", json={"status": status})

    async def get_my_flats(self) -> List[Dict[str, Any]]:
        return _items(await self.request("GET", "/flats/my"))

    # Billing

    async def get_my_invoices(self, page: int | None = None, status: str | None = None) -> List[Invoice]:
        data = await self.request("GET", "/billing/my-invoices", params={"page": page, "status": status})
        return [parse_invoice(item) for item in _items(data)]

    async def get_my_invoice(self, invoice_id: str) -> Invoice:
        data = await self.request("GET", f"/billing/my-invoices/{invoice_id}")
        invoice = dict(data.get("invoice") or {})
        invoice.setdefault("totalPaid", data.get("totalPaid", 0))
        invoice.setdefault("outstanding", data.get("outstanding", 0))
        return parse_invoice(invoice, data.get("payments") or [])

    async def create_invoice_order(self, invoice_id: str) -> Dict[str, Any]:
        return await self.request("POST", f"/billing/my-invoices/{invoice_id}/create-order", json={})

    async def verify_invoice_payment(self, payment_id: str, order_id: str, signature: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            "/billing/verify-payment",
            json={
                "razorpayPaymentId": payment_id,
                "razorpayOrderId": order_id,
                "razorpaySignature": signature,
            },
        )

    # PG rent payments

    async def get_next_rent_due(self) -> Dict[str, Any]:
        return await self.request("GET", "/pg-tenant/payments/next-due")

    async def get_rent_payment_history(self, page: int | None = None) -> List[Dict[str, Any]]:
        return _items(await self.request("GET", "/pg-tenant/payments/history", params={"page": page}))

    # Onboarding

    async def get_tenant_onboarding(self) -> OnboardingContext:
        return parse_onboarding_context(await self.request("GET", "/tenant/onboarding"))

    async def submit_tenant_kyc(self, form: KycForm) -> Dict[str, Any]:
        fields = {key: value for key, value in form.text_fields().items() if value}
        files = {
            key: (upload.filename, upload.content, upload.content_type)
            for key, upload in form.files().items()
        }
        return await self.request("POST", "/tenant/ekyc", data=fields, files=files or None)

    async def get_agreement_preview(self) -> str:
        return await self.request("GET", "/tenant/agreement/preview", expect="text")

    async def accept_agreement(self, otp: str, consent_flags: Dict[str, bool]) -> Dict[str, Any]:
        return await self.request(
            "POST", "/tenant/agreement/accept", json={"otp": otp, "consentFlags": consent_flags}
        )

    # Documents

    async def generate_documents(self) -> DocumentGenerationResult:
        data = await self.request("POST", "/documents/generate")
        if not isinstance(data, dict):
            raise RemoteAPIError("Unexpected document generation response")
        email_status = data.get("emailStatus")
        return DocumentGenerationResult(
            message=data.get("message") or "",
            email_status=EmailStatus(
                sent=bool(email_status.get("sent")),
                configured=bool(email_status.get("configured")),
                error=email_status.get("error"),
            )
            if isinstance(email_status, dict)
            else None,
        )

    async def download_document(self, document_type: str) -> bytes:
        """Fetch a generated PDF (ekyc | agreement)"""
        return await self.request("GET", f"/documents/download/{document_type}", expect="bytes")


def _items(data: Any) -> List[Dict[str, Any]]:
    """List endpoints answer either a bare list or a page {items: [...]}"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return list(data.get("items") or [])
    return []


def _id(data: Dict[str, Any]) -> str:
    return str(data.get("id") or data.get("_id") or "")


def parse_complaint(data: Dict[str, Any]) -> Complaint:
    return Complaint(
        id=_id(data),
        title=data.get("title") or "",
        description=data.get("description") or "",
        category=data.get("category") or "",
        status=(data.get("status") or "").upper(),
        priority=data.get("priority"),
        created_at=data.get("createdAt"),
    )


def _parse_status(value: Optional[str]) -> InvoiceStatus:
    try:
        return InvoiceStatus((value or "").upper())
    except ValueError:
        return InvoiceStatus.PENDING


def parse_invoice(data: Dict[str, Any], payments: List[Dict[str, Any]] | None = None) -> Invoice:
    flat = data.get("flat")
    if isinstance(flat, dict):
        flat = _id(flat)
    amount = float(data.get("amount") or 0)
    total_paid = float(data.get("totalPaid") or 0)
    outstanding = data.get("outstanding")
    return Invoice(
        id=_id(data),
        amount=amount,
        total_paid=total_paid,
        outstanding=float(outstanding) if outstanding is not None else max(amount - total_paid, 0),
        status=_parse_status(data.get("status")),
        due_date=date.fromisoformat(data["dueDate"][:10]) if data.get("dueDate") else None,
        month=data.get("month"),
        year=data.get("year"),
        flat=str(flat) if flat else None,
        notes=data.get("notes"),
        payments=[
            Payment(
                id=_id(payment),
                amount=float(payment.get("amount") or 0),
                method=payment.get("method") or "ONLINE",
                state=payment.get("state") or "APPROVED",
                paid_at=payment.get("paidAt"),
                reference=payment.get("reference"),
            )
            for payment in payments or []
        ],
    )


def parse_onboarding_context(data: Dict[str, Any]) -> OnboardingContext:
    user = data.get("user") or {}
    prop = data.get("property") or {}
    room = data.get("room") or {}
    financial = data.get("financial") or {}
    return OnboardingContext(
        user_id=_id(user),
        name=user.get("name") or "",
        email=user.get("email") or "",
        phone=user.get("phone") or "",
        onboarding_status=user.get("onboardingStatus"),
        kyc_status=user.get("kycStatus"),
        agreement_accepted=bool(user.get("agreementAccepted", False)),
        property=PropertyDetails(
            id=_id(prop),
            name=prop.get("name") or "PG Property",
            address=prop.get("address") or "",
            facilities=list(prop.get("facilities") or []),
            house_rules=prop.get("houseRules") or "",
        ),
        room=RoomDetails(
            room_number=room.get("roomNumber") or "",
            bed_number=room.get("bedNumber") or "",
        ),
        financial=FinancialTerms(
            rent=financial.get("rent") or 0,
            deposit=financial.get("deposit") or 0,
            move_in_date=financial.get("moveInDate"),
            due_date=financial.get("dueDate"),
            last_penalty_free_date=financial.get("lastPenaltyFreeDate"),
            late_fee_per_day=financial.get("lateFeePerDay"),
            notice_period_months=financial.get("noticePeriodMonths"),
            lock_in_months=financial.get("lockInMonths"),
        ),
    )
