from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.responses import Response
import copy
import uuid

TEST_OTP = "123456"
VALID_SIGNATURE = "valid_signature"

SEED_USERS = {
    "tenant@example.com": {
        "id": "u_tenant", "name": "Asha Rao", "email": "tenant@example.com", "password": "secret",
        "role": "PG_TENANT", "phone": "9876543210", "onboardingStatus": "invited", "kycStatus": None,
        "agreementAccepted": False,
    },
    "owner@example.com": {
        "id": "u_owner", "name": "Vikram Shah", "email": "owner@example.com", "password": "secret",
        "role": "FLAT_OWNER", "phone": "9123456780", "assignedProperty": {"_id": "flat_101"},
    },
    "officer@example.com": {
        "id": "u_officer", "name": "Meera Iyer", "email": "officer@example.com", "password": "secret",
        "role": "OFFICER", "phone": "9988776655",
    },
}

SEED_INVOICES = {
    "inv_due": {"_id": "inv_due", "amount": 2500, "status": "PENDING", "month": 9, "year": 2026,
                "dueDate": "2026-09-10T00:00:00.000Z", "flat": {"_id": "flat_101"}},
    "inv_paid": {"_id": "inv_paid", "amount": 2500, "status": "PAID", "month": 8, "year": 2026,
                 "dueDate": "2026-08-10T00:00:00.000Z", "flat": {"_id": "flat_101"}},
}

SEED_PAYMENTS = {
    "inv_paid": [{"_id": "pay_1", "amount": 2500, "method": "ONLINE", "state": "APPROVED",
                  "paidAt": "2026-08-05T10:00:00.000Z", "reference": "pay_seed"}],
}

SEED_COMPLAINTS = [
    {"_id": "c_1", "title": "Leaking tap", "description": "Kitchen tap leaks at night", "category": "PLUMBING",
     "status": "open", "priority": "MEDIUM", "createdAt": "2026-09-01T09:00:00.000Z", "owner": "u_owner"},
    {"_id": "c_2", "title": "Lift stuck", "description": "Lift B stops between floors", "category": "ELECTRICAL",
     "status": "in_progress", "priority": "HIGH", "createdAt": "2026-09-03T09:00:00.000Z", "owner": "u_owner"},
]


class MockRemote:
    """In-memory state of the remote society API, with switches for failure scenarios"""

    def __init__(self):
        self.users = copy.deepcopy(SEED_USERS)
        self.tokens = {}
        self.invoices = copy.deepcopy(SEED_INVOICES)
        self.payments = copy.deepcopy(SEED_PAYMENTS)
        self.complaints = copy.deepcopy(SEED_COMPLAINTS)
        self.participation = {}
        self.orders = {}
        self.kyc_submissions = []
        self.calls = []
        self.request_ids = []
        # Failure switches
        self.gateway_key_id = "rzp_test_key"
        self.fail_documents = False
        self.email_configured = True
        self.documents_payload = None

    def issue_token(self, email):
        token = f"tok_{uuid.uuid4().hex}"
        self.tokens[token] = email
        return token

    def public_user(self, email):
        return {key: value for key, value in self.users[email].items() if key != "password"}

    def totals(self, invoice_id):
        total_paid = sum(p["amount"] for p in self.payments.get(invoice_id, []) if p["state"] == "APPROVED")
        return total_paid, max(self.invoices[invoice_id]["amount"] - total_paid, 0)


def create_mock_app(remote=None):
    remote = remote or MockRemote()
    app = FastAPI(title="Mock Society API", version="1.0.0")
    app.state.remote = remote
    api = APIRouter(prefix="/api")

    @app.exception_handler(HTTPException)
    async def error_body(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.middleware("http")
    async def record_calls(request: Request, call_next):
        remote.calls.append(f"{request.method} {request.url.path}")
        if request.headers.get("x-request-id"):
            remote.request_ids.append(request.headers["x-request-id"])
        return await call_next(request)

    def current_email(request: Request):
        auth = request.headers.get("authorization", "")
        email = remote.tokens.get(auth.removeprefix("Bearer "))
        if email is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return email

    def invoice_or_404(invoice_id):
        if invoice_id not in remote.invoices:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return remote.invoices[invoice_id]

    def complaint_or_404(complaint_id):
        for complaint in remote.complaints:
            if complaint["_id"] == complaint_id:
                return complaint
        raise HTTPException(status_code=404, detail="Complaint not found")

    @app.get("/health")
    def health(): return {"status": "ok"}

    # Auth

    @api.post("/auth/login")
    def login(body: dict):
        user = remote.users.get(body.get("email"))
        if user is None or user["password"] != body.get("password"):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return {"token": remote.issue_token(user["email"]), "user": remote.public_user(user["email"])}

    @api.post("/auth/register", status_code=201)
    def register(body: dict):
        email = body.get("email")
        if email in remote.users:
            raise HTTPException(status_code=409, detail="Email already registered")
        remote.users[email] = {"id": f"u_{uuid.uuid4().hex[:8]}", "name": body.get("name"), "email": email,
                               "password": body.get("password"), "role": "CITIZEN"}
        return {"token": remote.issue_token(email), "user": remote.public_user(email)}

    @api.get("/me")
    def me(email: str = Depends(current_email)): return remote.public_user(email)

    @api.get("/profile")
    def profile(email: str = Depends(current_email)): return remote.public_user(email)

    @api.patch("/profile")
    def update_profile(body: dict, email: str = Depends(current_email)):
        remote.users[email].update({k: v for k, v in body.items() if k in ("name", "phone")})
        return remote.public_user(email)

    # Tenant onboarding

    @api.get("/tenant/onboarding")
    def onboarding(email: str = Depends(current_email)):
        return {
            "user": remote.public_user(email),
            "property": {"_id": "pg_1", "name": "Sunrise PG", "address": "12 MG Road, Bengaluru",
                         "facilities": ["WiFi", "Meals"], "houseRules": "No smoking"},
            "room": {"roomNumber": "204", "bedNumber": "B"},
            "financial": {"rent": 9000, "deposit": 18000, "moveInDate": "2026-10-01", "dueDate": 5,
                          "lastPenaltyFreeDate": 10, "lateFeePerDay": 50, "noticePeriodMonths": 1,
                          "lockInMonths": 3},
        }

    @api.post("/tenant/ekyc")
    async def ekyc(request: Request, email: str = Depends(current_email)):
        form = await request.form()
        missing = [name for name in ("fullName", "dateOfBirth", "idType", "idNumber") if not form.get(name)]
        if missing:
            raise HTTPException(status_code=400, detail=f"Missing fields: {', '.join(missing)}")
        remote.kyc_submissions.append({key: value for key, value in form.items() if isinstance(value, str)})
        remote.users[email]["kycStatus"] = "verified"
        return {"success": True, "message": "eKYC submitted"}

    @api.get("/tenant/agreement/preview", response_class=HTMLResponse)
    def agreement_preview(email: str = Depends(current_email)):
        return f"<html><body><h1>Rental Agreement</h1><p>Tenant: {remote.users[email]['name']}</p></body></html>"

    @api.post("/tenant/agreement/accept")
    def accept_agreement(body: dict, email: str = Depends(current_email)):
        if body.get("otp") != TEST_OTP:
            raise HTTPException(status_code=400, detail="Invalid OTP")
        if not all((body.get("consentFlags") or {}).values()):
            raise HTTPException(status_code=400, detail="All consents are required")
        remote.users[email].update({"onboardingStatus": "completed", "agreementAccepted": True})
        return {"success": True, "message": "Agreement accepted"}

    @api.post("/documents/generate")
    def generate_documents(email: str = Depends(current_email)):
        if remote.fail_documents:
            raise HTTPException(status_code=500, detail="PDF service unavailable")
        if remote.documents_payload is not None:
            return remote.documents_payload
        return {"message": "Documents generated",
                "emailStatus": {"sent": remote.email_configured, "configured": remote.email_configured}}

    @api.get("/documents/download/{document_type}")
    def download_document(document_type: str, email: str = Depends(current_email)):
        return Response(content=f"%PDF-1.4 {document_type}".encode(), media_type="application/pdf")

    # Billing

    @api.get("/billing/my-invoices")
    def my_invoices(email: str = Depends(current_email)):
        items = []
        for invoice_id, invoice in remote.invoices.items():
            total_paid, outstanding = remote.totals(invoice_id)
            items.append({**invoice, "totalPaid": total_paid, "outstanding": outstanding})
        return {"items": items, "page": 1}

    @api.get("/billing/my-invoices/{invoice_id}")
    def my_invoice(invoice_id: str, email: str = Depends(current_email)):
        invoice = invoice_or_404(invoice_id)
        total_paid, outstanding = remote.totals(invoice_id)
        return {"invoice": invoice, "payments": remote.payments.get(invoice_id, []),
                "totalPaid": total_paid, "outstanding": outstanding}

    @api.post("/billing/my-invoices/{invoice_id}/create-order")
    def create_order(invoice_id: str, email: str = Depends(current_email)):
        invoice_or_404(invoice_id)
        _, outstanding = remote.totals(invoice_id)
        if outstanding <= 0:
            raise HTTPException(status_code=400, detail="Invoice already paid")
        order_id = f"order_{uuid.uuid4().hex[:10]}"
        remote.orders[order_id] = invoice_id
        return {"orderId": order_id, "amount": outstanding, "amountInPaise": int(outstanding * 100),
                "currency": "INR", "razorpayKeyId": remote.gateway_key_id, "invoiceId": invoice_id}

    @api.post("/billing/verify-payment")
    def verify_payment(body: dict, email: str = Depends(current_email)):
        invoice_id = remote.orders.get(body.get("razorpayOrderId"))
        if invoice_id is None or body.get("razorpaySignature") != VALID_SIGNATURE:
            raise HTTPException(status_code=400, detail="Invalid payment signature")
        _, outstanding = remote.totals(invoice_id)
        remote.payments.setdefault(invoice_id, []).append(
            {"_id": f"pay_{uuid.uuid4().hex[:8]}", "amount": outstanding, "method": "ONLINE",
             "state": "APPROVED", "reference": body.get("razorpayPaymentId")})
        remote.invoices[invoice_id]["status"] = "PAID"
        return {"success": True}

    @api.get("/pg-tenant/payments/next-due")
    def next_due(email: str = Depends(current_email)):
        return {"amount": 9000, "dueDate": "2026-11-05", "month": 11, "year": 2026}

    @api.get("/pg-tenant/payments/history")
    def rent_history(email: str = Depends(current_email)):
        return {"items": [{"_id": "rent_1", "amount": 9000, "month": 10, "year": 2026, "status": "PAID"}]}

    # Complaints

    @api.post("/complaints", status_code=201)
    def create_complaint(body: dict, email: str = Depends(current_email)):
        complaint = {"_id": f"c_{uuid.uuid4().hex[:6]}", "title": body.get("title"),
                     "description": body.get("description"), "category": body.get("category"),
                     "status": "open", "priority": "MEDIUM", "createdAt": "2026-10-01T09:00:00.000Z",
                     "owner": remote.users[email]["id"]}
        remote.complaints.append(complaint)
        return complaint

    @api.get("/complaints/my")
    def my_complaints(email: str = Depends(current_email)):
        return [c for c in remote.complaints if c["owner"] == remote.users[email]["id"]]

    @api.get("/complaints/{complaint_id}")
    def get_complaint(complaint_id: str, email: str = Depends(current_email)): return complaint_or_404(complaint_id)

    @api.get("/officer/complaints")
    def officer_complaints(email: str = Depends(current_email)):
        if remote.users[email]["role"] != "OFFICER":
            raise HTTPException(status_code=403, detail="Forbidden")
        return {"items": remote.complaints}

    @api.patch("/officer/complaints/{complaint_id}/status")
    def update_status(complaint_id: str, body: dict, email: str = Depends(current_email)):
        complaint = complaint_or_404(complaint_id)
        complaint["status"] = body.get("status", complaint["status"]).lower()
        return complaint

    @api.patch("/officer/complaints/{complaint_id}/assign")
    def assign(complaint_id: str, email: str = Depends(current_email)):
        complaint = complaint_or_404(complaint_id)
        complaint["assignedTo"] = remote.users[email]["id"]
        return complaint

    # Community

    @api.get("/announcements")
    def announcements(email: str = Depends(current_email)):
        return [{"_id": "a_1", "title": "Water supply", "body": "No water on Sunday 10am-2pm"}]

    @api.get("/events")
    def events(email: str = Depends(current_email)):
        return [{"_id": "e_1", "title": "Diwali celebration", "date": "2026-11-08"}]

    @api.post("/events/{event_id}/participation")
    def participation(event_id: str, body: dict, email: str = Depends(current_email)):
        remote.participation[(event_id, email)] = body.get("status")
        return {"eventId": event_id, "status": body.get("status")}

    @api.get("/flats/my")
    def my_flats(email: str = Depends(current_email)):
        return [{"_id": "flat_101", "number": "101", "block": "A"}]

    app.include_router(api)
    return app


app = create_mock_app()
