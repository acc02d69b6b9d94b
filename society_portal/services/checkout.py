"""Invoice checkout bridge between the embedded gateway page and the remote API"""

import logging
import time
from typing import Any, Dict, Optional

from society_portal.config import Settings, settings as default_settings
from society_portal.domain.checkout import (
    build_checkout_options,
    parse_gateway_message,
    parse_payment_order,
    render_checkout_page,
)
from society_portal.domain.exceptions import (
    CheckoutError,
    DomainException,
    PaymentConfigurationError,
    PaymentFailedError,
    PaymentVerificationError,
)
from society_portal.domain.models import CheckoutSession, CheckoutStatus, GatewayEvent, Invoice
from society_portal.infrastructure.clients.portal import PortalClient
from society_portal.infrastructure.observability.logging import log_checkout_outcome
from society_portal.infrastructure.observability.metrics import record_checkout_outcome
from society_portal.services.notices import NoticeBoard
from society_portal.services.session_store import SessionStore

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Payment failed. Please try again or contact support."
VERIFICATION_FAILURE = (
    "We could not verify your payment. It may still have been captured, "
    "so please contact support instead of paying again."
)


class HostedCheckoutSurface:
    """Embedded checkout page held by the host until an outcome arrives"""

    def __init__(self):
        self.html: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.html is not None

    def open(self, html: str) -> None:
        self.html = html

    def close(self) -> None:
        self.html = None


class CheckoutBridge:
    """
    One invoice view with at most one active checkout.

    pay() creates the order and opens the surface; handle_message() consumes
    the single outcome the gateway page posts back. Every outcome and
    unmount() go through close().
    """

    def __init__(
        self,
        client: PortalClient,
        session_store: SessionStore,
        notices: NoticeBoard,
        invoice_id: str,
        message_url: str,
        surface: HostedCheckoutSurface | None = None,
        config: Settings | None = None,
    ):
        self.client = client
        self.session_store = session_store
        self.notices = notices
        self.invoice_id = invoice_id
        self.message_url = message_url
        self.surface = surface or HostedCheckoutSurface()
        self.config = config or default_settings
        self.invoice: Optional[Invoice] = None
        self.checkout: Optional[CheckoutSession] = None
        self.last_status: Optional[CheckoutStatus] = None
        self.creating_order = False
        self.verifying = False
        self._mounted = True
        self._started_at: Optional[float] = None

    @property
    def can_pay(self) -> bool:
        """Pay Now is offered only for an outstanding balance and an idle bridge"""
        return (
            self._mounted
            and self.invoice is not None
            and self.invoice.is_payable
            and not self.creating_order
            and not self.verifying
            and not self.surface.is_open
            and self.checkout is None
        )

    async def load(self) -> Invoice:
        """Fetch the authoritative invoice state"""
        invoice = await self.client.get_my_invoice(self.invoice_id)
        if self._mounted:
            self.invoice = invoice
        return invoice

    async def pay(self) -> Optional[CheckoutSession]:
        """
        Start a checkout.

        Returns:
            The new checkout, or None when paying is not currently possible

        Raises:
            PaymentConfigurationError: Order lacks gateway key or order id
            RemoteAPIError: The order could not be created
        """
        if not self.can_pay:
            return None

        self.creating_order = True
        self._started_at = time.time()
        try:
            data = await self.client.create_invoice_order(self.invoice.id)
            order = parse_payment_order(data, self.config.default_currency)
        except PaymentConfigurationError:
            self._record("configuration_error", None)
            raise
        except DomainException:
            self._record("error", None)
            raise
        finally:
            self.creating_order = False

        if not self._mounted:
            return None

        options = build_checkout_options(
            order,
            self.session_store.user,
            description=self._description(),
            merchant_name=self.config.merchant_name,
            theme_color=self.config.checkout_theme_color,
        )
        self.checkout = CheckoutSession(
            order_id=order.order_id,
            amount_in_smallest_unit=order.amount_in_smallest_unit,
            currency=order.currency,
            gateway_key_id=order.gateway_key_id,
            invoice_id=order.invoice_id or self.invoice.id,
            status=CheckoutStatus.AWAITING_RESULT,
        )
        self.surface.open(render_checkout_page(options, self.config.gateway_script_url, self.message_url))
        return self.checkout

    async def handle_message(self, raw: str | bytes | Dict[str, Any]) -> Optional[CheckoutStatus]:
        """
        Apply an outcome posted by the checkout page.

        Returns:
            The checkout status after handling, or None when no checkout was open
        """
        message = parse_gateway_message(raw)
        checkout = self.checkout
        if checkout is None or checkout.status != CheckoutStatus.AWAITING_RESULT:
            logger.warning("Checkout message without an open checkout", extra={"invoice_id": self.invoice_id})
            self.close()
            return None

        self.close()

        if message.event == GatewayEvent.SUCCESS:
            return await self._verify(checkout, message.payload)

        if message.event == GatewayEvent.FAILED:
            self._notify(PaymentFailedError(message.payload.get("description") or GENERIC_FAILURE))
            return self._finish(checkout, CheckoutStatus.FAILED, "failed")

        return self._finish(checkout, CheckoutStatus.DISMISSED, "dismissed")

    def close(self) -> None:
        """Discard the embedded surface; safe to call repeatedly"""
        if self.surface.is_open:
            self.surface.close()

    def unmount(self) -> None:
        self.close()
        self._mounted = False

    async def _verify(self, checkout: CheckoutSession, payload: Dict[str, Any]) -> CheckoutStatus:
        checkout.status = CheckoutStatus.VERIFYING
        self.verifying = True
        try:
            await self.client.verify_invoice_payment(
                payment_id=payload.get("razorpay_payment_id") or "",
                order_id=payload.get("razorpay_order_id") or checkout.order_id,
                signature=payload.get("razorpay_signature") or "",
            )
        except DomainException as e:
            logger.error(
                "Payment verification failed",
                extra={"invoice_id": checkout.invoice_id, "order_id": checkout.order_id, "error": str(e)},
            )
            self._notify(PaymentVerificationError(VERIFICATION_FAILURE))
            return self._finish(checkout, CheckoutStatus.FAILED, "verification_failed")
        finally:
            self.verifying = False

        self.notices.success("Payment successful", "Your payment has been verified.")
        status = self._finish(checkout, CheckoutStatus.SUCCEEDED, "succeeded")
        try:
            await self.load()
        except DomainException as e:
            logger.warning("Invoice refresh after payment failed", extra={"error": str(e)})
        return status

    def _finish(self, checkout: CheckoutSession, status: CheckoutStatus, outcome: str) -> CheckoutStatus:
        checkout.status = status
        self._record(outcome, checkout.order_id)
        if self._mounted:
            self.last_status = status
        if self.checkout is checkout:
            self.checkout = None
        return status

    def _notify(self, error: CheckoutError) -> None:
        self.notices.error(error.title, str(error))

    def _record(self, outcome: str, order_id: Optional[str]) -> None:
        duration_ms = (time.time() - self._started_at) * 1000 if self._started_at else None
        record_checkout_outcome(outcome)
        log_checkout_outcome(self.invoice_id, order_id, outcome, duration_ms)

    def _description(self) -> str:
        if self.invoice and self.invoice.month and self.invoice.year:
            return f"Maintenance payment for {self.invoice.month}/{self.invoice.year}"
        return "Maintenance payment"
