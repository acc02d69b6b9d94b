"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(str, Enum):
    CITIZEN = "CITIZEN"
    TENANT = "TENANT"
    PG_TENANT = "PG_TENANT"
    OFFICER = "OFFICER"
    FLAT_OWNER = "FLAT_OWNER"
    PG_OWNER = "PG_OWNER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """Missing or unknown roles fall back to CITIZEN"""
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.CITIZEN


class OnboardingStep(str, Enum):
    PG_DETAILS = "PG_DETAILS"
    EKYC = "EKYC"
    AGREEMENT = "AGREEMENT"


class InvoiceStatus(str, Enum):
    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class CheckoutStatus(str, Enum):
    PENDING = "PENDING"
    AWAITING_RESULT = "AWAITING_RESULT"
    VERIFYING = "VERIFYING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    DISMISSED = "DISMISSED"


class GatewayEvent(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    DISMISS = "DISMISS"


@dataclass
class UserSummary:
    """Current user as reported by the remote API"""

    id: str
    name: str
    email: str
    role: Role = Role.CITIZEN
    phone: str = ""
    onboarding_status: Optional[str] = None  # invited | kyc_pending | kyc_verified | completed
    kyc_status: Optional[str] = None  # pending | verified | rejected
    agreement_accepted: bool = False
    assigned_property: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "UserSummary":
        assigned = data.get("assignedProperty")
        if isinstance(assigned, dict):
            assigned = assigned.get("id") or assigned.get("_id")
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            name=data.get("name") or "",
            email=data.get("email") or "",
            role=Role.parse(data.get("role")),
            phone=data.get("phone") or data.get("phoneNumber") or "",
            onboarding_status=data.get("onboardingStatus"),
            kyc_status=data.get("kycStatus"),
            agreement_accepted=bool(data.get("agreementAccepted", False)),
            assigned_property=str(assigned) if assigned else None,
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "phone": self.phone,
            "onboardingStatus": self.onboarding_status,
            "kycStatus": self.kyc_status,
            "agreementAccepted": self.agreement_accepted,
            "assignedProperty": self.assigned_property,
        }


@dataclass
class Session:
    """Bearer token plus the cached user it belongs to"""

    token: Optional[str] = None
    user: Optional[UserSummary] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None


@dataclass
class PropertyDetails:
    id: str
    name: str
    address: str
    facilities: List[str] = field(default_factory=list)
    house_rules: str = ""


@dataclass
class RoomDetails:
    room_number: str = ""
    bed_number: str = ""


@dataclass
class FinancialTerms:
    rent: float = 0
    deposit: float = 0
    move_in_date: Optional[str] = None
    due_date: Optional[int] = None
    last_penalty_free_date: Optional[int] = None
    late_fee_per_day: Optional[float] = None
    notice_period_months: Optional[int] = None
    lock_in_months: Optional[int] = None


@dataclass
class OnboardingContext:
    """Server snapshot returned by GET /tenant/onboarding"""

    user_id: str
    name: str
    email: str
    phone: str
    onboarding_status: Optional[str]
    kyc_status: Optional[str]
    agreement_accepted: bool
    property: PropertyDetails
    room: RoomDetails
    financial: FinancialTerms


@dataclass
class UploadedFile:
    """File chosen for an eKYC upload"""

    filename: str
    content: bytes
    content_type: str = "image/jpeg"


@dataclass
class KycForm:
    full_name: str = ""
    date_of_birth: str = ""
    gender: str = ""
    father_mother_name: str = ""
    phone: str = ""
    email: str = ""
    permanent_address: str = ""
    occupation: str = ""
    company_college_name: str = ""
    id_type: str = "AADHAAR"
    id_number: str = ""
    id_front: Optional[UploadedFile] = None
    id_back: Optional[UploadedFile] = None
    selfie: Optional[UploadedFile] = None

    def text_fields(self) -> Dict[str, str]:
        """Form fields keyed the way the remote API expects them"""
        return {
            "fullName": self.full_name,
            "dateOfBirth": self.date_of_birth,
            "gender": self.gender,
            "fatherMotherName": self.father_mother_name,
            "phone": self.phone,
            "email": self.email,
            "permanentAddress": self.permanent_address,
            "occupation": self.occupation,
            "companyCollegeName": self.company_college_name,
            "idType": self.id_type,
            "idNumber": self.id_number,
        }

    def files(self) -> Dict[str, UploadedFile]:
        uploads = {"idFront": self.id_front, "idBack": self.id_back, "selfie": self.selfie}
        return {key: upload for key, upload in uploads.items() if upload is not None}


@dataclass
class ConsentFlags:
    personal_details_correct: bool = False
    pg_details_agreed: bool = False
    kyc_authorized: bool = False
    agreement_accepted: bool = False

    @property
    def all_given(self) -> bool:
        return all(asdict(self).values())

    def to_api(self) -> Dict[str, bool]:
        return {
            "personalDetailsCorrect": self.personal_details_correct,
            "pgDetailsAgreed": self.pg_details_agreed,
            "kycAuthorized": self.kyc_authorized,
            "agreementAccepted": self.agreement_accepted,
        }


@dataclass
class OnboardingState:
    current_step: OnboardingStep
    context: Optional[OnboardingContext]
    kyc_form: KycForm = field(default_factory=KycForm)
    consent_flags: ConsentFlags = field(default_factory=ConsentFlags)
    otp: str = ""


@dataclass
class EmailStatus:
    sent: bool
    configured: bool
    error: Optional[str] = None


@dataclass
class DocumentGenerationResult:
    message: str
    email_status: Optional[EmailStatus] = None


@dataclass
class Payment:
    id: str
    amount: float
    method: str
    state: str = "APPROVED"
    paid_at: Optional[str] = None
    reference: Optional[str] = None


@dataclass
class Invoice:
    id: str
    amount: float
    outstanding: float
    total_paid: float
    status: InvoiceStatus
    due_date: Optional[date] = None
    month: Optional[int] = None
    year: Optional[int] = None
    flat: Optional[str] = None
    notes: Optional[str] = None
    payments: List[Payment] = field(default_factory=list)

    @property
    def is_payable(self) -> bool:
        return self.outstanding > 0


@dataclass
class PaymentOrder:
    """Order created server-side before the gateway widget opens"""

    order_id: Optional[str]
    amount_in_smallest_unit: int
    currency: str
    gateway_key_id: Optional[str]
    invoice_id: Optional[str] = None


@dataclass
class CheckoutSession:
    order_id: str
    amount_in_smallest_unit: int
    currency: str
    gateway_key_id: str
    invoice_id: str
    status: CheckoutStatus = CheckoutStatus.PENDING


@dataclass
class GatewayMessage:
    """Message posted by the embedded gateway page to the host"""

    event: GatewayEvent
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Complaint:
    id: str
    title: str
    description: str
    category: str
    status: str
    priority: Optional[str] = None
    created_at: Optional[str] = None
