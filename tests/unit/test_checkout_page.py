"""Unit tests for the checkout page and gateway message protocol"""

import json

import pytest
from society_portal.domain.checkout import (
    CONFIGURATION_ERROR,
    build_checkout_options,
    parse_gateway_message,
    parse_payment_order,
    render_checkout_page,
)
from society_portal.domain.exceptions import PaymentConfigurationError
from society_portal.domain.models import GatewayEvent, UserSummary


def test_parse_order_prefers_amount_in_paise():
    order = parse_payment_order(
        {"orderId": "order_1", "razorpayKeyId": "rzp_key", "amount": 2500, "amountInPaise": 250000},
        "INR",
    )
    assert order.order_id == "order_1"
    assert order.amount_in_smallest_unit == 250000
    assert order.currency == "INR"


def test_parse_order_converts_rupees_when_paise_missing():
    order = parse_payment_order(
        {"orderId": "order_1", "razorpayKeyId": "rzp_key", "amount": 1234.56, "currency": "INR"},
        "INR",
    )
    assert order.amount_in_smallest_unit == 123456


@pytest.mark.parametrize(
    "data",
    [
        {"orderId": "order_1", "amount": 100},
        {"razorpayKeyId": "rzp_key", "amount": 100},
        {"orderId": "", "razorpayKeyId": "rzp_key"},
    ],
)
def test_parse_order_missing_gateway_fields_is_configuration_error(data):
    with pytest.raises(PaymentConfigurationError) as exc_info:
        parse_payment_order(data, "INR")
    assert str(exc_info.value) == CONFIGURATION_ERROR


@pytest.mark.parametrize(
    "amounts",
    [
        {"amount": "2,500.00"},
        {"amount": {"value": 2500}},
        {"amount": 2500, "amountInPaise": "abc"},
        {"amountInPaise": "2500.5"},
    ],
)
def test_parse_order_non_numeric_amount_is_configuration_error(amounts):
    with pytest.raises(PaymentConfigurationError) as exc_info:
        parse_payment_order({"orderId": "order_1", "razorpayKeyId": "rzp_key", **amounts}, "INR")
    assert str(exc_info.value) == CONFIGURATION_ERROR


def test_checkout_page_embeds_options_and_message_url():
    order = parse_payment_order({"orderId": "order_1", "razorpayKeyId": "rzp_key", "amount": 10}, "INR")
    user = UserSummary(id="u1", name="Asha", email="asha@example.com", phone="9876543210")
    options = build_checkout_options(order, user, "Maintenance payment", "Society Portal", "#2563eb")

    html = render_checkout_page(options, "https://checkout.example/v1/checkout.js", "http://host/messages")

    assert '<script src="https://checkout.example/v1/checkout.js"></script>' in html
    assert '"order_id": "order_1"' in html
    assert '"contact": "9876543210"' in html
    assert 'const messageUrl = "http://host/messages";' in html
    assert 'event: "SUCCESS"' in html
    assert 'event: "DISMISS"' in html
    assert 'event: "FAILED"' in html


def test_checkout_page_escapes_closing_script_tags():
    order = parse_payment_order({"orderId": "order_1", "razorpayKeyId": "rzp_key", "amount": 10}, "INR")
    options = build_checkout_options(order, None, "</script><script>alert(1)", "Society", "#000")

    html = render_checkout_page(options, "https://checkout.example/v1/checkout.js", "http://host/messages")

    assert "</script><script>alert(1)" not in html


def test_parse_success_message():
    raw = json.dumps({"event": "SUCCESS", "payload": {"razorpay_payment_id": "pay_1"}})
    message = parse_gateway_message(raw)
    assert message.event == GatewayEvent.SUCCESS
    assert message.payload["razorpay_payment_id"] == "pay_1"


def test_parse_failed_message_from_bytes():
    message = parse_gateway_message(b'{"event": "FAILED", "payload": {"description": "Card declined"}}')
    assert message.event == GatewayEvent.FAILED
    assert message.payload == {"description": "Card declined"}


@pytest.mark.parametrize(
    "raw",
    ["not json", '{"payload": {}}', '{"event": "REFUND"}', '{"event": "SUCCESS", "payload": "x"}', "[]"],
)
def test_malformed_messages_are_treated_as_dismiss(raw):
    message = parse_gateway_message(raw)
    assert message.event == GatewayEvent.DISMISS
    assert message.payload == {}
