"""Checkout page construction and the gateway message protocol.

The embedded page loads the gateway script, opens its modal and reports one
outcome back to the host as JSON: {"event": "SUCCESS" | "FAILED" | "DISMISS",
"payload": {...}}. The host never sends anything back; it only discards the
page once an outcome arrives.
"""

import json
import logging
from typing import Any, Dict, Optional

from society_portal.domain.exceptions import PaymentConfigurationError
from society_portal.domain.models import GatewayEvent, GatewayMessage, PaymentOrder, UserSummary

logger = logging.getLogger(__name__)

CONFIGURATION_ERROR = "Payment gateway is not configured. Please contact support."

CHECKOUT_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title}</title>
</head>
<body style="background:#f1f5f9;margin:0;padding:0;">
  <script src="{script_url}"></script>
  <script>
    const messageUrl = {message_url};
    function post(message) {{
      const body = JSON.stringify(message);
      if (window.ReactNativeWebView) {{
        window.ReactNativeWebView.postMessage(body);
      }} else if (window.parent && window.parent !== window) {{
        window.parent.postMessage(body, "*");
      }}
      fetch(messageUrl, {{ method: "POST", headers: {{ "Content-Type": "application/json" }}, body: body }});
    }}
    const options = {options};
    options.handler = function (response) {{
      post({{ event: "SUCCESS", payload: response }});
    }};
    options.modal = {{
      ondismiss: function () {{
        post({{ event: "DISMISS" }});
      }}
    }};
    const checkout = new Razorpay(options);
    checkout.on("payment.failed", function (response) {{
      post({{ event: "FAILED", payload: response.error }});
    }});
    checkout.open();
  </script>
</body>
</html>
"""


def parse_payment_order(data: Dict[str, Any], default_currency: str) -> PaymentOrder:
    """
    Normalize a create-order response.

    Raises:
        PaymentConfigurationError: When the gateway key or order id is missing,
            or the amount is not a number
    """
    if not data.get("razorpayKeyId") or not data.get("orderId"):
        raise PaymentConfigurationError(CONFIGURATION_ERROR)

    try:
        if data.get("amountInPaise") is not None:
            amount = int(data["amountInPaise"])
        else:
            amount = int(round(float(data.get("amount") or 0) * 100))
    except (TypeError, ValueError) as e:
        raise PaymentConfigurationError(CONFIGURATION_ERROR) from e

    return PaymentOrder(
        order_id=data["orderId"],
        amount_in_smallest_unit=amount,
        currency=data.get("currency") or default_currency,
        gateway_key_id=data["razorpayKeyId"],
        invoice_id=data.get("invoiceId"),
    )


def build_checkout_options(
    order: PaymentOrder,
    user: Optional[UserSummary],
    description: str,
    merchant_name: str,
    theme_color: str,
) -> Dict[str, Any]:
    """Gateway widget options with prefilled contact fields"""
    return {
        "key": order.gateway_key_id,
        "amount": order.amount_in_smallest_unit,
        "currency": order.currency,
        "name": merchant_name,
        "description": description,
        "order_id": order.order_id,
        "prefill": {
            "name": user.name if user else "",
            "email": user.email if user else "",
            "contact": user.phone if user else "",
        },
        "notes": {"invoiceId": order.invoice_id},
        "theme": {"color": theme_color},
    }


def _script_literal(value: Any) -> str:
    # Keep "</script>" inside JSON from closing the inline script
    return json.dumps(value).replace("</", "<\\/")


def render_checkout_page(options: Dict[str, Any], script_url: str, message_url: str) -> str:
    return CHECKOUT_PAGE.format(
        title="Checkout",
        script_url=script_url,
        message_url=_script_literal(message_url),
        options=_script_literal(options),
    )


def parse_gateway_message(raw: str | bytes | Dict[str, Any]) -> GatewayMessage:
    """
    Decode a message posted by the checkout page.

    Anything that is not a well-formed {event, payload?} object is treated as
    a DISMISS so the surface always closes and the user can retry.
    """
    try:
        data = raw if isinstance(raw, dict) else json.loads(raw)
        event = GatewayEvent(data["event"])
        payload = data.get("payload") or {}
        if not isinstance(payload, dict):
            raise TypeError(f"payload must be an object, got {type(payload).__name__}")
    except (KeyError, ValueError, TypeError) as e:
        logger.warning("Checkout message parse failed", extra={"error": str(e)})
        return GatewayMessage(event=GatewayEvent.DISMISS)

    return GatewayMessage(event=event, payload=payload)
