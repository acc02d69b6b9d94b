"""Tenant onboarding step derivation"""

from typing import Optional

from society_portal.domain.models import OnboardingStep

# Forward order of the wizard
STEP_ORDER = [OnboardingStep.PG_DETAILS, OnboardingStep.EKYC, OnboardingStep.AGREEMENT]


def starting_step(kyc_status: Optional[str], onboarding_status: Optional[str]) -> OnboardingStep:
    """
    Derive where the wizard opens from server-reported status only.

    Examples:
        kyc_status="verified"           -> AGREEMENT
        onboarding_status="kyc_pending" -> EKYC
        anything else                   -> PG_DETAILS
    """
    if kyc_status == "verified":
        return OnboardingStep.AGREEMENT
    if onboarding_status == "kyc_pending":
        return OnboardingStep.EKYC
    return OnboardingStep.PG_DETAILS


def is_onboarding_complete(onboarding_status: Optional[str]) -> bool:
    return onboarding_status == "completed"


def previous_step(step: OnboardingStep) -> OnboardingStep:
    index = STEP_ORDER.index(step)
    return STEP_ORDER[max(index - 1, 0)]
