"""Client-side validation for onboarding and account forms.

Each validator returns an error message, or None when the value is valid.
Checks run before any network call so a bad form never costs a round-trip.
"""

import re
from typing import Callable, Dict, Optional

from society_portal.domain.models import ConsentFlags, KycForm

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DOMAIN_RE = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?(\.[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?)*$", re.IGNORECASE)
PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")

MIN_OTP_LENGTH = 4

# Field -> label for the mandatory eKYC fields
REQUIRED_KYC_FIELDS = {
    "full_name": "Full name",
    "date_of_birth": "Date of birth",
    "gender": "Gender",
    "phone": "Phone number",
    "email": "Email",
    "permanent_address": "Permanent address",
    "id_type": "ID type",
    "id_number": "ID number",
}


def _is_blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def validate_email(email: Optional[str]) -> Optional[str]:
    if _is_blank(email):
        return "Email is required"
    if not EMAIL_RE.match(email):
        return "Please enter a valid email address"
    domain = email.split("@", 1)[1].lower()
    if not DOMAIN_RE.match(domain):
        return "Please enter a valid email domain"
    return None


def clean_phone(phone: str) -> str:
    """Strip formatting and an Indian country code prefix"""
    digits = re.sub(r"\D", "", phone)
    if digits.startswith("91") and len(digits) in (12, 13):
        digits = digits[2:]
    return digits


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """Indian mobile number: 10 digits starting with 6, 7, 8 or 9"""
    if _is_blank(phone):
        return "Phone number is required"
    digits = clean_phone(phone)
    if len(digits) != 10:
        return "Phone number must be 10 digits (e.g., 9876543210)"
    if digits[0] not in "6789":
        return "Phone number must start with 6, 7, 8, or 9"
    return None


def validate_aadhaar(aadhaar: str) -> Optional[str]:
    digits = re.sub(r"\D", "", aadhaar)
    if len(digits) != 12:
        return "Aadhaar number must be exactly 12 digits"
    if digits[0] in "01":
        return "Aadhaar number cannot start with 0 or 1"
    if len(set(digits)) == 1:
        return "Aadhaar number cannot be all the same digit"
    return None


def validate_pan(pan: str) -> Optional[str]:
    cleaned = re.sub(r"\s", "", pan).upper()
    if len(cleaned) != 10:
        return "PAN number must be exactly 10 characters (e.g., ABCDE1234F)"
    if not PAN_RE.match(cleaned):
        return "Invalid PAN format. Must be 5 letters, 4 digits, 1 letter (e.g., ABCDE1234F)"
    return None


def _length_check(label: str, low: int, high: int) -> Callable[[str], Optional[str]]:
    def check(value: str) -> Optional[str]:
        cleaned = re.sub(r"\s", "", value)
        if not low <= len(cleaned) <= high:
            return f"{label} number must be between {low}-{high} characters"
        return None

    return check


ID_VALIDATORS: Dict[str, Callable[[str], Optional[str]]] = {
    "AADHAAR": validate_aadhaar,
    "PAN": validate_pan,
    "DL": _length_check("Driving License", 10, 20),
    "PASSPORT": _length_check("Passport", 6, 12),
    "VOTER_ID": _length_check("Voter ID", 8, 15),
}


def validate_id_number(id_type: Optional[str], id_number: Optional[str]) -> Optional[str]:
    if _is_blank(id_type) or _is_blank(id_number):
        return "ID type and number are required"
    validator = ID_VALIDATORS.get(id_type.upper())
    if validator is not None:
        return validator(id_number)
    if len(id_number.strip()) < 5:
        return "ID number must be at least 5 characters"
    return None


def validate_kyc_form(form: KycForm) -> Dict[str, str]:
    """Collect every problem with an eKYC form, keyed by field name"""
    errors: Dict[str, str] = {}
    for name, label in REQUIRED_KYC_FIELDS.items():
        if _is_blank(getattr(form, name)):
            errors[name] = f"{label} is required"

    if "email" not in errors:
        email_error = validate_email(form.email)
        if email_error:
            errors["email"] = email_error
    if "phone" not in errors:
        phone_error = validate_phone(form.phone)
        if phone_error:
            errors["phone"] = phone_error
    if "id_type" not in errors and "id_number" not in errors:
        id_error = validate_id_number(form.id_type, form.id_number)
        if id_error:
            errors["id_number"] = id_error
    return errors


def validate_agreement_acceptance(otp: Optional[str], consent_flags: ConsentFlags) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not consent_flags.all_given:
        errors["consent_flags"] = "Please check all consent boxes"
    if _is_blank(otp) or len(otp.strip()) < MIN_OTP_LENGTH:
        errors["otp"] = "Please enter a valid OTP"
    return errors
