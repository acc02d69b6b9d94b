"""Tenant onboarding wizard: PG details -> eKYC -> agreement"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, Optional, Set

from society_portal.config import Settings, settings as default_settings
from society_portal.domain.exceptions import (
    ActionInProgressError,
    DomainException,
    OnboardingError,
    ValidationError,
)
from society_portal.domain.models import (
    ConsentFlags,
    DocumentGenerationResult,
    KycForm,
    OnboardingContext,
    OnboardingState,
    OnboardingStep,
)
from society_portal.domain.onboarding import is_onboarding_complete, previous_step, starting_step
from society_portal.domain.validation import validate_agreement_acceptance, validate_kyc_form
from society_portal.infrastructure.clients.portal import PortalClient
from society_portal.infrastructure.observability.logging import log_onboarding_transition
from society_portal.infrastructure.observability.metrics import (
    document_generation_failure_counter,
    onboarding_transition_counter,
)
from society_portal.services.notices import NoticeBoard
from society_portal.services.session_store import SessionStore

logger = logging.getLogger(__name__)

SUBMIT_KYC = "submit_kyc"
ACCEPT_AGREEMENT = "accept_agreement"


class OnboardingWizard:
    """
    Forward-gated three step wizard.

    The step only moves forward after the server confirms the current step;
    going back is always allowed. The starting step is re-derived from server
    status on every mount and never stored locally.
    """

    def __init__(
        self,
        client: PortalClient,
        session_store: SessionStore,
        notices: NoticeBoard,
        config: Settings | None = None,
    ):
        self.client = client
        self.session_store = session_store
        self.notices = notices
        self.config = config or default_settings
        self.state: Optional[OnboardingState] = None
        self.loading = False
        self.completed = False
        self._mounted = False
        self._in_flight: Set[str] = set()

    @property
    def is_busy(self) -> bool:
        return bool(self._in_flight)

    def is_pending(self, action: str) -> bool:
        return action in self._in_flight

    @property
    def otp_hint(self) -> Optional[str]:
        """Fixed OTP accepted by non-production servers"""
        return None if self.config.is_production else self.config.test_otp

    async def mount(self) -> Optional[str]:
        """
        Open the wizard.

        Returns:
            A redirect path when onboarding is already completed, else None

        Raises:
            RemoteAPIError: When the onboarding snapshot cannot be loaded
        """
        self._mounted = True
        self.completed = False
        user = self.session_store.user
        if user is not None and is_onboarding_complete(user.onboarding_status):
            self._mounted = False
            return self.config.dashboard_path

        self.loading = True
        try:
            context = await self.client.get_tenant_onboarding()
        finally:
            self.loading = False

        if not self._mounted:
            return None
        if is_onboarding_complete(context.onboarding_status):
            self._mounted = False
            return self.config.dashboard_path

        step = starting_step(context.kyc_status, context.onboarding_status)
        self.state = OnboardingState(current_step=step, context=context, kyc_form=self._prefilled_form(context))
        log_onboarding_transition(context.user_id, None, step.value, "mount")
        return None

    def unmount(self) -> None:
        """Late responses arriving after this no longer touch wizard state"""
        self._mounted = False

    def acknowledge_details(self) -> OnboardingStep:
        """PG_DETAILS is informational; acknowledging it needs no server call"""
        state = self._require_step(OnboardingStep.PG_DETAILS)
        return self._move(state, OnboardingStep.EKYC, "acknowledge")

    def go_back(self) -> OnboardingStep:
        state = self._require_state()
        return self._move(state, previous_step(state.current_step), "back")

    async def submit_kyc(self, form: KycForm) -> None:
        """
        Submit the eKYC form as multipart data.

        Raises:
            ValidationError: Mandatory or malformed fields; no request is sent
            ActionInProgressError: A submission is already pending
            OnboardingError / RemoteAPIError: The server rejected the submission
        """
        state = self._require_step(OnboardingStep.EKYC)
        if self.is_pending(SUBMIT_KYC):
            raise ActionInProgressError(SUBMIT_KYC)
        state.kyc_form = form
        errors = validate_kyc_form(form)
        if errors:
            raise ValidationError(errors)

        with self._guard(SUBMIT_KYC):
            result = await self.client.submit_tenant_kyc(form)
            if not result.get("success"):
                raise OnboardingError(result.get("error") or "KYC verification failed")
            if not self._mounted:
                return

            self.notices.success("eKYC complete", "eKYC verification successful!")
            self._move(state, OnboardingStep.AGREEMENT, "ekyc_verified")
            await self._refresh_context()

    async def preview_agreement(self) -> str:
        """Agreement text as raw HTML, rendered read-only by the caller"""
        self._require_step(OnboardingStep.AGREEMENT)
        return await self.client.get_agreement_preview()

    async def accept_agreement(self, otp: str, consent_flags: ConsentFlags) -> str:
        """
        Accept the agreement and finish onboarding.

        Entered OTP and consents are kept on the state whatever the outcome.
        Document generation afterwards is best-effort and only ever produces
        a warning.

        Returns:
            Path of the landing page to redirect to
        """
        state = self._require_step(OnboardingStep.AGREEMENT)
        # A rejected duplicate must not overwrite what the pending call sent
        if self.is_pending(ACCEPT_AGREEMENT):
            raise ActionInProgressError(ACCEPT_AGREEMENT)
        state.otp = otp
        state.consent_flags = replace(consent_flags)
        errors = validate_agreement_acceptance(otp, consent_flags)
        if errors:
            raise ValidationError(errors)

        with self._guard(ACCEPT_AGREEMENT):
            result = await self.client.accept_agreement(otp.strip(), consent_flags.to_api())
            if not result.get("success"):
                raise OnboardingError(result.get("error") or "Failed to accept agreement")

            self.completed = True
            onboarding_transition_counter.labels(to_step="COMPLETED").inc()
            log_onboarding_transition(
                state.context.user_id if state.context else None,
                state.current_step.value,
                "COMPLETED",
                "agreement_accepted",
            )
            self.notices.success("Onboarding complete", "Onboarding complete! Welcome to your PG.")

            try:
                await self.session_store.refresh_user()
            except DomainException as e:
                logger.warning("User refresh after onboarding failed", extra={"error": str(e)})
                self.notices.warning("Profile refresh", "Onboarding complete, but your profile could not be refreshed.")

            await self._generate_documents()
            self._mounted = False
            return self.config.onboarding_landing_path

    async def _generate_documents(self) -> None:
        try:
            result = await self.client.generate_documents()
        except DomainException as e:
            document_generation_failure_counter.inc()
            logger.warning("Document generation failed", extra={"error": str(e)})
            self.notices.warning(
                "Documents",
                "Onboarding complete, but document generation encountered an issue. "
                "You can generate documents later from the Documents page.",
            )
            return
        self._announce_documents(result)

    def _announce_documents(self, result: DocumentGenerationResult) -> None:
        status = result.email_status
        if status is None:
            self.notices.success("Documents", "Documents generated successfully!")
        elif status.sent:
            self.notices.success("Documents", "Documents generated and sent via email to you and your PG owner!")
        elif status.configured:
            self.notices.warning(
                "Documents",
                f"Documents generated but email sending had issues: {status.error or 'Unknown error'}",
            )
        else:
            self.notices.info(
                "Documents",
                "Documents generated but email is not configured. "
                "You can download them from the Documents page.",
            )

    async def _refresh_context(self) -> None:
        """Server status flags may have changed after a successful step"""
        try:
            context = await self.client.get_tenant_onboarding()
        except DomainException as e:
            logger.warning("Onboarding refresh failed", extra={"error": str(e)})
            return
        if self._mounted and self.state is not None:
            self.state.context = context

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        if action in self._in_flight:
            raise ActionInProgressError(action)
        self._in_flight.add(action)
        try:
            yield
        finally:
            self._in_flight.discard(action)

    def _move(self, state: OnboardingState, step: OnboardingStep, trigger: str) -> OnboardingStep:
        if step != state.current_step:
            log_onboarding_transition(
                state.context.user_id if state.context else None,
                state.current_step.value,
                step.value,
                trigger,
            )
            onboarding_transition_counter.labels(to_step=step.value).inc()
            state.current_step = step
        return step

    def _require_state(self) -> OnboardingState:
        if self.state is None or self.completed:
            raise OnboardingError("Onboarding is not open")
        return self.state

    def _require_step(self, step: OnboardingStep) -> OnboardingState:
        state = self._require_state()
        if state.current_step != step:
            raise OnboardingError(f"Expected step {step.value}, wizard is at {state.current_step.value}")
        return state

    @staticmethod
    def _prefilled_form(context: OnboardingContext) -> KycForm:
        return KycForm(full_name=context.name, email=context.email, phone=context.phone)
