"""Unit tests for the Flutterwave client with a mocked HTTP session."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from modules.cart.exceptions import PaymentInitializationError
from modules.cart.gateways import FlutterwaveGateway

pytestmark = pytest.mark.unit


def make_gateway(response=None, error=None):
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    gateway = FlutterwaveGateway(
        secret_key="FLWSECK_TEST-abc",
        base_url="https://api.flutterwave.test/v3/",
        redirect_url="https://sachio.app/sachio-mobile/close",
        session=session,
    )
    return gateway, session


def json_response(body):
    response = MagicMock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


class TestFlutterwaveGateway:
    def test_returns_the_hosted_payment_link(self):
        gateway, session = make_gateway(
            json_response({"status": "success", "data": {"link": "https://checkout.flw/abc"}})
        )

        result = gateway.initialize(
            reference="sachio-cart-1",
            amount=Decimal("9000"),
            currency="NGN",
            email="alice@example.com",
            phone="+2348031234567",
        )

        assert result.redirect_url == "https://checkout.flw/abc"
        assert result.amount == Decimal("9000")
        url = session.post.call_args.args[0]
        kwargs = session.post.call_args.kwargs
        assert url == "https://api.flutterwave.test/v3/payments"
        assert kwargs["json"]["tx_ref"] == "sachio-cart-1"
        assert kwargs["json"]["amount"] == 9000
        assert kwargs["headers"]["Authorization"] == "Bearer FLWSECK_TEST-abc"

    def test_missing_link_raises(self):
        gateway, _ = make_gateway(json_response({"status": "error", "message": "Invalid key"}))
        with pytest.raises(PaymentInitializationError, match="Invalid key"):
            gateway.initialize("r", Decimal("1"), "NGN", "a@b.co", "080")

    def test_network_error_raises(self):
        gateway, _ = make_gateway(error=requests.ConnectionError("down"))
        with pytest.raises(PaymentInitializationError):
            gateway.initialize("r", Decimal("1"), "NGN", "a@b.co", "080")

    def test_http_error_raises(self):
        response = json_response({})
        response.raise_for_status.side_effect = requests.HTTPError("401")
        gateway, _ = make_gateway(response)
        with pytest.raises(PaymentInitializationError):
            gateway.initialize("r", Decimal("1"), "NGN", "a@b.co", "080")
