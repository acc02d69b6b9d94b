"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Any, Dict, List, Optional

from society_portal.domain.models import (
    CheckoutSession,
    Complaint,
    Invoice,
    OnboardingContext,
    OnboardingState,
    UserSummary,
)
from society_portal.services.notices import Notice


class NoticeSchema(BaseModel):
    level: str
    title: str
    message: str

    @classmethod
    def from_notice(cls, notice: Notice) -> "NoticeSchema":
        return cls(level=notice.level, title=notice.title, message=notice.message)


class LoginRequest(BaseModel):
    """Request body for POST /v1/session/login"""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class RegisterRequest(LoginRequest):
    """Request body for POST /v1/session/register"""

    name: str = Field(..., min_length=1)


class UserSchema(BaseModel):
    id: str
    name: str
    email: str
    role: str
    phone: str = ""
    onboarding_status: Optional[str] = None
    kyc_status: Optional[str] = None
    agreement_accepted: bool = False
    assigned_property: Optional[str] = None

    @classmethod
    def from_user(cls, user: UserSummary) -> "UserSchema":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            phone=user.phone,
            onboarding_status=user.onboarding_status,
            kyc_status=user.kyc_status,
            agreement_accepted=user.agreement_accepted,
            assigned_property=user.assigned_property,
        )


class SessionResponse(BaseModel):
    """Response for /v1/session endpoints"""

    authenticated: bool
    loading: bool = False
    user: Optional[UserSchema] = None


class PropertySchema(BaseModel):
    id: str
    name: str
    address: str
    facilities: List[str] = []
    house_rules: str = ""
    room_number: str = ""
    bed_number: str = ""
    rent: float = 0
    deposit: float = 0
    move_in_date: Optional[str] = None
    due_date: Optional[int] = None
    last_penalty_free_date: Optional[int] = None
    late_fee_per_day: Optional[float] = None
    notice_period_months: Optional[int] = None
    lock_in_months: Optional[int] = None

    @classmethod
    def from_context(cls, context: OnboardingContext) -> "PropertySchema":
        return cls(
            id=context.property.id,
            name=context.property.name,
            address=context.property.address,
            facilities=context.property.facilities,
            house_rules=context.property.house_rules,
            room_number=context.room.room_number,
            bed_number=context.room.bed_number,
            rent=context.financial.rent,
            deposit=context.financial.deposit,
            move_in_date=context.financial.move_in_date,
            due_date=context.financial.due_date,
            last_penalty_free_date=context.financial.last_penalty_free_date,
            late_fee_per_day=context.financial.late_fee_per_day,
            notice_period_months=context.financial.notice_period_months,
            lock_in_months=context.financial.lock_in_months,
        )


class ConsentSchema(BaseModel):
    personal_details_correct: bool = False
    pg_details_agreed: bool = False
    kyc_authorized: bool = False
    agreement_accepted: bool = False


class OnboardingResponse(BaseModel):
    """Wizard state, or a redirect when the wizard cannot be shown"""

    current_step: Optional[str] = None
    redirect_to: Optional[str] = None
    completed: bool = False
    kyc_status: Optional[str] = None
    onboarding_status: Optional[str] = None
    property: Optional[PropertySchema] = None
    prefill: Dict[str, str] = {}
    consent_flags: Optional[ConsentSchema] = None
    otp_hint: Optional[str] = None
    notices: List[NoticeSchema] = []

    @classmethod
    def from_state(
        cls,
        state: OnboardingState,
        otp_hint: Optional[str],
        notices: List[Notice],
    ) -> "OnboardingResponse":
        context = state.context
        return cls(
            current_step=state.current_step.value,
            kyc_status=context.kyc_status if context else None,
            onboarding_status=context.onboarding_status if context else None,
            property=PropertySchema.from_context(context) if context else None,
            prefill={
                "full_name": state.kyc_form.full_name,
                "email": state.kyc_form.email,
                "phone": state.kyc_form.phone,
            },
            consent_flags=ConsentSchema(
                personal_details_correct=state.consent_flags.personal_details_correct,
                pg_details_agreed=state.consent_flags.pg_details_agreed,
                kyc_authorized=state.consent_flags.kyc_authorized,
                agreement_accepted=state.consent_flags.agreement_accepted,
            ),
            otp_hint=otp_hint,
            notices=[NoticeSchema.from_notice(n) for n in notices],
        )


class AgreementAcceptRequest(BaseModel):
    """Request body for POST /v1/onboarding/agreement/accept"""

    otp: str = ""
    consent_flags: ConsentSchema


class PaymentSchema(BaseModel):
    id: str
    amount: float
    method: str
    state: str
    paid_at: Optional[str] = None
    reference: Optional[str] = None


class InvoiceSchema(BaseModel):
    id: str
    amount: float
    outstanding: float
    total_paid: float
    status: str
    due_date: Optional[date] = None
    month: Optional[int] = None
    year: Optional[int] = None
    notes: Optional[str] = None
    payments: List[PaymentSchema] = []

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceSchema":
        return cls(
            id=invoice.id,
            amount=invoice.amount,
            outstanding=invoice.outstanding,
            total_paid=invoice.total_paid,
            status=invoice.status.value,
            due_date=invoice.due_date,
            month=invoice.month,
            year=invoice.year,
            notes=invoice.notes,
            payments=[
                PaymentSchema(
                    id=p.id,
                    amount=p.amount,
                    method=p.method,
                    state=p.state,
                    paid_at=p.paid_at,
                    reference=p.reference,
                )
                for p in invoice.payments
            ],
        )


class InvoiceViewResponse(BaseModel):
    """Invoice detail plus whether Pay Now may be offered"""

    invoice: InvoiceSchema
    can_pay: bool
    checkout_status: Optional[str] = None
    notices: List[NoticeSchema] = []


class CheckoutResponse(BaseModel):
    """Response for POST /v1/invoices/{invoice_id}/pay"""

    started: bool
    checkout_url: Optional[str] = None
    order_id: Optional[str] = None
    amount_in_smallest_unit: Optional[int] = None
    currency: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_checkout(cls, checkout: Optional[CheckoutSession], checkout_url: str) -> "CheckoutResponse":
        if checkout is None:
            return cls(started=False)
        return cls(
            started=True,
            checkout_url=checkout_url,
            order_id=checkout.order_id,
            amount_in_smallest_unit=checkout.amount_in_smallest_unit,
            currency=checkout.currency,
            status=checkout.status.value,
        )


class GatewayMessageResponse(BaseModel):
    status: Optional[str] = None


class ComplaintSchema(BaseModel):
    id: str
    title: str
    description: str
    category: str
    status: str
    priority: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_complaint(cls, complaint: Complaint) -> "ComplaintSchema":
        return cls(
            id=complaint.id,
            title=complaint.title,
            description=complaint.description,
            category=complaint.category,
            status=complaint.status,
            priority=complaint.priority,
            created_at=complaint.created_at,
        )


class ComplaintCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    flat_id: Optional[str] = None


class ComplaintStatusRequest(BaseModel):
    status: str = Field(..., pattern="^(OPEN|IN_PROGRESS|RESOLVED|CLOSED)$")


class ParticipationRequest(BaseModel):
    status: str = Field("GOING", pattern="^(INTERESTED|GOING)$")


class ProfileUpdateRequest(BaseModel):
    changes: Dict[str, Any]
