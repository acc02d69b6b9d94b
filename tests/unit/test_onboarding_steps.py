"""Unit tests for onboarding step derivation"""

import pytest
from society_portal.domain.models import OnboardingStep
from society_portal.domain.onboarding import is_onboarding_complete, previous_step, starting_step


@pytest.mark.parametrize(
    "kyc_status,onboarding_status,expected",
    [
        ("verified", "kyc_verified", OnboardingStep.AGREEMENT),
        ("verified", "kyc_pending", OnboardingStep.AGREEMENT),
        (None, "kyc_pending", OnboardingStep.EKYC),
        ("pending", "kyc_pending", OnboardingStep.EKYC),
        (None, "invited", OnboardingStep.PG_DETAILS),
        ("rejected", None, OnboardingStep.PG_DETAILS),
        (None, None, OnboardingStep.PG_DETAILS),
    ],
)
def test_starting_step(kyc_status, onboarding_status, expected):
    assert starting_step(kyc_status, onboarding_status) == expected


def test_only_completed_status_is_complete():
    assert is_onboarding_complete("completed")
    assert not is_onboarding_complete("kyc_verified")
    assert not is_onboarding_complete(None)


def test_previous_step_stops_at_first_step():
    assert previous_step(OnboardingStep.AGREEMENT) == OnboardingStep.EKYC
    assert previous_step(OnboardingStep.EKYC) == OnboardingStep.PG_DETAILS
    assert previous_step(OnboardingStep.PG_DETAILS) == OnboardingStep.PG_DETAILS
