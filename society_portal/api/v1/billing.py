"""/v1/invoices - maintenance invoices and the embedded checkout"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse

from society_portal.api.dependencies import PortalState, get_portal, require_session
from society_portal.api.v1.schemas import (
    CheckoutResponse,
    GatewayMessageResponse,
    InvoiceSchema,
    InvoiceViewResponse,
    NoticeSchema,
)
from society_portal.services.checkout import CheckoutBridge

router = APIRouter(dependencies=[Depends(require_session)])


def _view(portal: PortalState, bridge: CheckoutBridge) -> InvoiceViewResponse:
    status = bridge.checkout.status if bridge.checkout else bridge.last_status
    return InvoiceViewResponse(
        invoice=InvoiceSchema.from_invoice(bridge.invoice),
        can_pay=bridge.can_pay,
        checkout_status=status.value if status else None,
        notices=[NoticeSchema.from_notice(n) for n in portal.notices.drain()],
    )


@router.get("/invoices", response_model=List[InvoiceSchema])
async def list_invoices(
    page: Optional[int] = Query(None, ge=1),
    status: Optional[str] = Query(None),
    portal: PortalState = Depends(get_portal),
):
    invoices = await portal.client.get_my_invoices(page=page, status=status)
    return [InvoiceSchema.from_invoice(invoice) for invoice in invoices]


@router.get("/invoices/{invoice_id}", response_model=InvoiceViewResponse)
async def get_invoice(invoice_id: str, portal: PortalState = Depends(get_portal)):
    """Invoice detail; can_pay is false once nothing is outstanding"""
    bridge = portal.checkout_bridge(invoice_id)
    await bridge.load()
    return _view(portal, bridge)


@router.post("/invoices/{invoice_id}/pay", response_model=CheckoutResponse)
async def pay_invoice(invoice_id: str, request: Request, portal: PortalState = Depends(get_portal)):
    """
    Create a gateway order and open the embedded checkout page.

    Returns started=false without side effects when there is nothing to pay
    or a checkout step is already pending.
    """
    bridge = portal.checkout_bridge(invoice_id)
    if bridge.invoice is None:
        await bridge.load()
    checkout = await bridge.pay()
    checkout_url = str(request.url_for("checkout_page", invoice_id=invoice_id))
    return CheckoutResponse.from_checkout(checkout, checkout_url)


@router.get("/invoices/{invoice_id}/checkout", response_class=HTMLResponse, name="checkout_page")
def checkout_page(invoice_id: str, portal: PortalState = Depends(get_portal)):
    bridge = portal.checkout_bridges.get(invoice_id)
    if bridge is None or not bridge.surface.is_open:
        raise HTTPException(status_code=404, detail="No checkout is open for this invoice")
    return HTMLResponse(bridge.surface.html)


@router.post("/invoices/{invoice_id}/checkout/messages", response_model=GatewayMessageResponse)
async def checkout_message(invoice_id: str, request: Request, portal: PortalState = Depends(get_portal)):
    """Message channel for the embedded page: {event, payload?}"""
    bridge = portal.checkout_bridges.get(invoice_id)
    if bridge is None:
        raise HTTPException(status_code=404, detail="No checkout is open for this invoice")
    status = await bridge.handle_message(await request.body())
    return GatewayMessageResponse(status=status.value if status else None)
