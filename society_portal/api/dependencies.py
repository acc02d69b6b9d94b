"""Dependency injection for FastAPI endpoints"""

from typing import Dict, Optional

from fastapi import Depends, HTTPException, Request

from society_portal.config import settings
from society_portal.infrastructure.clients.portal import PortalClient
from society_portal.services.checkout import CheckoutBridge
from society_portal.services.notices import NoticeBoard
from society_portal.services.onboarding import OnboardingWizard
from society_portal.services.session_store import SessionStore


class PortalState:
    """Long-lived objects shared by every request of one host app"""

    def __init__(self, client: PortalClient, session_store: SessionStore):
        self.client = client
        self.session_store = session_store
        self.notices = NoticeBoard()
        self.wizard: Optional[OnboardingWizard] = None
        self.checkout_bridges: Dict[str, CheckoutBridge] = {}

    def open_wizard(self) -> OnboardingWizard:
        """A fresh wizard per mount; the previous one stops receiving updates"""
        if self.wizard is not None:
            self.wizard.unmount()
        self.wizard = OnboardingWizard(self.client, self.session_store, self.notices)
        return self.wizard

    def checkout_bridge(self, invoice_id: str) -> CheckoutBridge:
        """One bridge, and so at most one checkout, per invoice view"""
        bridge = self.checkout_bridges.get(invoice_id)
        if bridge is None:
            bridge = CheckoutBridge(
                self.client,
                self.session_store,
                self.notices,
                invoice_id,
                message_url=f"{settings.host_base_url}/v1/invoices/{invoice_id}/checkout/messages",
            )
            self.checkout_bridges[invoice_id] = bridge
        return bridge

    def reset(self) -> None:
        """Drop per-user views when the session ends"""
        if self.wizard is not None:
            self.wizard.unmount()
            self.wizard = None
        for bridge in self.checkout_bridges.values():
            bridge.unmount()
        self.checkout_bridges.clear()


def get_portal(request: Request) -> PortalState:
    """Extract the shared portal state from the app"""
    return request.app.state.portal


def get_client(portal: PortalState = Depends(get_portal)) -> PortalClient:
    return portal.client


def get_session_store(portal: PortalState = Depends(get_portal)) -> SessionStore:
    return portal.session_store


def require_session(portal: PortalState = Depends(get_portal)) -> SessionStore:
    """Reject requests while nobody is signed in"""
    store = portal.session_store
    if not store.is_authenticated:
        portal.reset()
        raise HTTPException(status_code=401, detail="Not signed in")
    return store


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")
