"""Unit tests for form validation"""

import pytest
from society_portal.domain.models import ConsentFlags, KycForm
from society_portal.domain.validation import (
    clean_phone,
    validate_agreement_acceptance,
    validate_email,
    validate_id_number,
    validate_kyc_form,
    validate_phone,
)


def complete_form(**overrides) -> KycForm:
    fields = dict(
        full_name="Asha Rao",
        date_of_birth="1998-04-12",
        gender="FEMALE",
        phone="9876543210",
        email="tenant@example.com",
        permanent_address="12 MG Road, Bengaluru",
        id_type="AADHAAR",
        id_number="234567890123",
    )
    fields.update(overrides)
    return KycForm(**fields)


def all_consents() -> ConsentFlags:
    return ConsentFlags(
        personal_details_correct=True,
        pg_details_agreed=True,
        kyc_authorized=True,
        agreement_accepted=True,
    )


def test_complete_form_is_valid():
    assert validate_kyc_form(complete_form()) == {}


def test_missing_date_of_birth_is_reported():
    errors = validate_kyc_form(complete_form(date_of_birth=""))
    assert errors == {"date_of_birth": "Date of birth is required"}


def test_blank_whitespace_counts_as_missing():
    errors = validate_kyc_form(complete_form(full_name="   ", permanent_address=""))
    assert set(errors) == {"full_name", "permanent_address"}


def test_optional_fields_may_be_empty():
    form = complete_form(father_mother_name="", occupation="", company_college_name="")
    assert validate_kyc_form(form) == {}


@pytest.mark.parametrize(
    "email,expected",
    [
        ("tenant@example.com", None),
        ("", "Email is required"),
        ("not-an-email", "Please enter a valid email address"),
        ("a@-bad-.com", "Please enter a valid email domain"),
    ],
)
def test_validate_email(email, expected):
    assert validate_email(email) == expected


def test_clean_phone_strips_country_code():
    assert clean_phone("+91 98765 43210") == "9876543210"


@pytest.mark.parametrize(
    "phone,valid",
    [("9876543210", True), ("+91-9876543210", True), ("5876543210", False), ("98765", False)],
)
def test_validate_phone(phone, valid):
    assert (validate_phone(phone) is None) is valid


@pytest.mark.parametrize(
    "id_type,id_number,valid",
    [
        ("AADHAAR", "2345 6789 0123", True),
        ("AADHAAR", "123456789012", False),  # starts with 1
        ("AADHAAR", "222222222222", False),
        ("PAN", "abcde1234f", True),
        ("PAN", "ABCD12345F", False),
        ("DL", "KA0120201234567", True),
        ("PASSPORT", "K12", False),
        ("VOTER_ID", "ABC1234567", True),
        ("OTHER", "1234", False),
    ],
)
def test_validate_id_number(id_type, id_number, valid):
    assert (validate_id_number(id_type, id_number) is None) is valid


def test_invalid_id_number_reported_on_form():
    errors = validate_kyc_form(complete_form(id_type="PAN", id_number="12345"))
    assert "id_number" in errors


def test_agreement_requires_every_consent():
    flags = all_consents()
    flags.kyc_authorized = False
    errors = validate_agreement_acceptance("123456", flags)
    assert errors == {"consent_flags": "Please check all consent boxes"}


@pytest.mark.parametrize("otp", ["", "   ", "12"])
def test_agreement_requires_an_otp(otp):
    errors = validate_agreement_acceptance(otp, all_consents())
    assert errors == {"otp": "Please enter a valid OTP"}


def test_agreement_accepts_valid_input():
    assert validate_agreement_acceptance("123456", all_consents()) == {}
