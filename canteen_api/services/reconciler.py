"""Payment webhook verification and reconciliation"""

import enum
import hashlib
import hmac
import json
from typing import Any, Dict, List, Optional

import structlog

from canteen_api.errors import ConflictError, ServiceError, SignatureError
from canteen_api.models.order import Order
from canteen_api.repositories.orders import OrderStore
from canteen_api.services.lifecycle import OrderLifecycleManager

logger = structlog.get_logger()

# Length of a full UUID4 string
ORDER_ID_LENGTH = 36

# Shortest reference still treated as a truncated order id: the first four
# UUID groups. Shorter receipts come from other integrations on the account.
TRUNCATED_REFERENCE_MIN_LENGTH = 24


class WebhookOutcome(str, enum.Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"
    UNRESOLVED = "unresolved"
    REJECTED = "rejected"


def _entity(event: Dict[str, Any], name: str) -> Dict[str, Any]:
    payload = event.get("payload") or {}
    wrapper = payload.get(name) if isinstance(payload, dict) else None
    entity = wrapper.get("entity") if isinstance(wrapper, dict) else None
    return entity if isinstance(entity, dict) else {}


def _notes(entity: Dict[str, Any]) -> Dict[str, Any]:
    # Razorpay sends an empty list when there are no notes
    notes = entity.get("notes")
    return notes if isinstance(notes, dict) else {}


def _is_amount(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _reference(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class WebhookReconciler:
    """
    Applies Razorpay payment notifications to orders.

    Once the signature checks out the notification is always acknowledged,
    whatever the business outcome: retrying a signed body cannot change how
    it resolves. Unexpected errors (a store outage) still propagate so the
    provider retries.
    """

    SIGNATURE_HEADER = "X-Razorpay-Signature"
    CAPTURED_EVENT = "payment.captured"

    def __init__(
        self,
        lifecycle: OrderLifecycleManager,
        store: OrderStore,
        webhook_secret: str,
        provider: str = "razorpay",
    ):
        self._lifecycle = lifecycle
        self._store = store
        self._secret = webhook_secret
        self.provider = provider

    def verify_signature(self, raw_body: bytes, signature: Optional[str]) -> None:
        """HMAC-SHA256 over the exact raw body, hex encoded"""
        if not self._secret:
            raise SignatureError("Webhook secret is not configured")
        if not signature:
            raise SignatureError("Missing webhook signature")

        expected = hmac.new(self._secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
        if not hmac.compare_digest(expected.encode("ascii"), signature.strip().encode("utf-8")):
            raise SignatureError("Webhook signature mismatch")

    async def handle(self, raw_body: bytes, signature: Optional[str]) -> WebhookOutcome:
        try:
            self.verify_signature(raw_body, signature)
        except SignatureError as e:
            logger.warning("Rejected webhook", reason=e.message, body_length=len(raw_body))
            raise

        try:
            event = json.loads(raw_body)
        except ValueError:
            logger.warning("Signed webhook body is not JSON")
            return WebhookOutcome.IGNORED
        if not isinstance(event, dict):
            logger.warning("Signed webhook body is not an object")
            return WebhookOutcome.IGNORED

        event_kind = event.get("event")
        if event_kind != self.CAPTURED_EVENT:
            logger.info("Ignoring webhook event", event_kind=event_kind)
            return WebhookOutcome.IGNORED

        payment = _entity(event, "payment")
        payment_id = _reference(payment.get("id"))
        if payment_id is None:
            logger.warning("Captured payment without an id")
            return WebhookOutcome.REJECTED

        try:
            order = await self._resolve_order(payment, _entity(event, "order"))
        except ConflictError as e:
            logger.error(
                "Ambiguous webhook reference",
                provider_payment_id=payment_id,
                reason=e.message,
                **e.context,
            )
            return WebhookOutcome.REJECTED

        if order is None:
            logger.warning(
                "Webhook reference did not resolve to an order",
                provider_payment_id=payment_id,
                provider_order_id=payment.get("order_id"),
            )
            return WebhookOutcome.UNRESOLVED

        amount = payment.get("amount")
        if _is_amount(amount) and amount != order.total_amount_minor:
            logger.error(
                "Captured amount does not match order total",
                order_id=order.order_id,
                provider_payment_id=payment_id,
                captured_amount_minor=amount,
                total_amount_minor=order.total_amount_minor,
            )
            return WebhookOutcome.REJECTED

        try:
            await self._lifecycle.mark_paid(
                order.order_id,
                payment_id,
                provider_order_id=_reference(payment.get("order_id")),
                provider=self.provider,
                method=_reference(payment.get("method")),
            )
        except ServiceError as e:
            logger.warning(
                "Payment not applied",
                order_id=order.order_id,
                provider_payment_id=payment_id,
                reason=e.reason,
                detail=e.message,
            )
            return WebhookOutcome.REJECTED

        return WebhookOutcome.PROCESSED

    async def _resolve_order(
        self,
        payment: Dict[str, Any],
        order_entity: Dict[str, Any],
    ) -> Optional[Order]:
        """
        Receipt first, then the orderId note, then the provider order id.

        The note settles a truncated receipt that matches several orders.
        Primary and fallback references naming different orders is a conflict.
        """
        primary = _reference(order_entity.get("receipt")) or _reference(payment.get("receipt"))
        fallback = _reference(_notes(payment).get("orderId")) or _reference(
            _notes(order_entity).get("orderId")
        )

        candidates = await self._lookup_reference(primary) if primary else []
        by_fallback = await self._store.find_by_order_id(fallback) if fallback else None

        if by_fallback is not None:
            if candidates and by_fallback.order_id not in {c.order_id for c in candidates}:
                raise ConflictError(
                    "Webhook references name different orders",
                    receipt=primary,
                    note_order_id=fallback,
                )
            return by_fallback

        if len(candidates) > 1:
            raise ConflictError(
                "Truncated reference matches more than one order",
                receipt=primary,
            )
        if candidates:
            return candidates[0]

        provider_order_id = _reference(payment.get("order_id"))
        if provider_order_id:
            return await self._store.find_by_provider_payment_ref(provider_order_id)
        return None

    async def _lookup_reference(self, reference: str) -> List[Order]:
        """Exact match, or up to two prefix matches for a truncated order id"""
        order = await self._store.find_by_order_id(reference)
        if order is not None:
            return [order]
        if not TRUNCATED_REFERENCE_MIN_LENGTH <= len(reference) < ORDER_ID_LENGTH:
            return []
        return await self._store.find_by_order_id_prefix(reference, limit=2)
