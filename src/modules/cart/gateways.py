"""Payment gateway clients.

The checkout only needs one thing from a gateway: given a reference, an
amount and a currency, a link the customer opens to pay.  Confirmation
comes back as a redirect the client reports to ``checkout/confirm``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Protocol

import requests
import structlog
from django.conf import settings

from modules.cart.dtos import PaymentSessionDTO
from modules.cart.exceptions import PaymentInitializationError
from modules.core.money import as_plain_number

logger = structlog.get_logger(__name__)

FLUTTERWAVE_TIMEOUT_SECONDS = 15


class PaymentGateway(Protocol):
    def initialize(
        self,
        reference: str,
        amount: Decimal,
        currency: str,
        email: str,
        phone: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> PaymentSessionDTO: ...


class FlutterwaveGateway:
    """Flutterwave Standard: ``POST /payments`` returns a hosted-checkout link."""

    def __init__(
        self,
        secret_key: str,
        base_url: str,
        redirect_url: str,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._redirect_url = redirect_url
        self._session = session or requests.Session()

    def initialize(
        self,
        reference: str,
        amount: Decimal,
        currency: str,
        email: str,
        phone: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> PaymentSessionDTO:
        payload = {
            "tx_ref": reference,
            "amount": as_plain_number(amount),
            "currency": currency,
            "redirect_url": self._redirect_url,
            "customer": {"email": email, "phone_number": phone},
            "payment_options": "card",
            "meta": meta or {},
        }
        log = logger.bind(reference=reference, amount=str(amount), currency=currency)
        try:
            response = self._session.post(
                f"{self._base_url}/payments",
                json=payload,
                headers={"Authorization": f"Bearer {self._secret_key}"},
                timeout=FLUTTERWAVE_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            log.warning("payment.initialize_failed", error=str(exc))
            raise PaymentInitializationError("Payment initialization failed.") from exc

        link = (body.get("data") or {}).get("link")
        if not link:
            log.warning("payment.link_missing", message=body.get("message"))
            raise PaymentInitializationError(body.get("message") or "Could not start payment.")

        log.info("payment.initialized")
        return PaymentSessionDTO(
            reference=reference,
            redirect_url=link,
            amount=amount,
            currency=currency,
        )


def get_payment_gateway() -> PaymentGateway:
    return FlutterwaveGateway(
        secret_key=settings.FLW_SECRET_KEY,
        base_url=settings.FLW_BASE_URL,
        redirect_url=settings.PAYMENT_REDIRECT_URL,
    )
