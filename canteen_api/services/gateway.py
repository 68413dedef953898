"""Payment gateway adapters"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
import structlog
from pydantic import BaseModel

from canteen_api.errors import UpstreamUnavailable

logger = structlog.get_logger()


class PaymentIntent(BaseModel):
    """Provider-side payment reservation for one order"""
    provider: str
    intent_id: str
    amount_minor: int
    currency: str
    receipt: str
    notes: Dict[str, Any] = {}
    key_id: str = ""


class PaymentGateway(ABC):
    """Abstract base class for payment providers"""

    name: str = "gateway"

    @abstractmethod
    async def create_intent(
        self,
        amount_minor: int,
        currency: str,
        reference: str,
        metadata: Dict[str, Any],
    ) -> PaymentIntent:
        """Create a payment intent tagged with reference"""
        pass


class RazorpayGateway(PaymentGateway):
    """Razorpay Orders API"""

    name = "razorpay"

    # Razorpay rejects longer receipts, which is why the reference is also
    # carried in the notes
    RECEIPT_MAX_LENGTH = 40

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def create_intent(
        self,
        amount_minor: int,
        currency: str,
        reference: str,
        metadata: Dict[str, Any],
    ) -> PaymentIntent:
        if not self.key_id or not self._key_secret:
            raise UpstreamUnavailable("Payment gateway is not configured", reference=reference)

        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": reference[: self.RECEIPT_MAX_LENGTH],
            "notes": {key: str(value) for key, value in metadata.items()},
        }

        logger.debug(
            "Razorpay order request",
            reference=reference,
            amount_minor=amount_minor,
            currency=currency,
        )

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.key_id, self._key_secret),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post("/v1/orders", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Razorpay rejected order creation",
                reference=reference,
                status_code=e.response.status_code,
            )
            raise UpstreamUnavailable("Payment gateway rejected the request", reference=reference) from e
        except httpx.HTTPError as e:
            logger.error("Razorpay unreachable", reference=reference, error=str(e))
            raise UpstreamUnavailable("Payment gateway is unavailable", reference=reference) from e
        except ValueError as e:
            logger.error("Razorpay returned a non-JSON body", reference=reference)
            raise UpstreamUnavailable("Payment gateway returned an invalid response", reference=reference) from e

        intent_id = data.get("id")
        if not intent_id:
            logger.error("Razorpay response missing order id", reference=reference)
            raise UpstreamUnavailable("Payment gateway returned an invalid response", reference=reference)

        logger.info("Razorpay order created", reference=reference, intent_id=intent_id)

        return PaymentIntent(
            provider=self.name,
            intent_id=intent_id,
            amount_minor=data.get("amount", amount_minor),
            currency=data.get("currency", currency),
            receipt=data.get("receipt") or payload["receipt"],
            notes=data.get("notes") or payload["notes"],
            key_id=self.key_id,
        )
