"""Stripe payment processor service for refunds.

Provides integration with Stripe using the v8+ StripeClient pattern.
Retrieves API keys from SSM Parameter Store.
"""

import hashlib
import json
import logging
import uuid
from functools import lru_cache

import stripe
from stripe import StripeClient

from staybook_shared.config import get_settings

from .ssm_service import SSMServiceError, get_ssm_service, parameter_path

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Service for Stripe refund operations.

    Handles:
    - Refund intent creation (verifies the original PaymentIntent)
    - Refund execution
    - Webhook signature validation

    Network calls use a bounded timeout and no automatic retries; a failed
    refund is resolved by an operator, never retried blindly.

    Usage:
        stripe_svc = get_stripe_service()
        intent = stripe_svc.create_refund_intent(
            payment_intent_id="pi_3ABC123DEF456",
            amount_cents=480000,
            refund_id="RFD-1A2B3C4D5E6F",
        )
    """

    def __init__(
        self,
        environment: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize Stripe service with credentials from SSM.

        Args:
            environment: Environment name (dev, prod). Defaults to the configured environment.
            timeout_seconds: Network timeout. Defaults to PROCESSOR_TIMEOUT_SECONDS.
        """
        settings = get_settings()
        self._environment = environment or settings.environment
        self._timeout_seconds = timeout_seconds or settings.processor_timeout_seconds
        self._ssm = get_ssm_service()
        self._client: StripeClient | None = None
        self._webhook_secret: str | None = None

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            StripeServiceError: If credentials cannot be retrieved.
        """
        if self._client is None:
            try:
                secret_key = self._ssm.get_parameter(
                    parameter_path(self._environment, "stripe", "secret_key")
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to initialize Stripe client: {e}") from e
            self._client = StripeClient(
                secret_key,
                http_client=stripe.RequestsClient(timeout=self._timeout_seconds),
                max_network_retries=0,
            )
            logger.info("Stripe client initialized for environment: %s", self._environment)
        return self._client

    def _get_webhook_secret(self) -> str:
        """Get the webhook signing secret.

        Raises:
            StripeServiceError: If secret cannot be retrieved.
        """
        if self._webhook_secret is None:
            try:
                self._webhook_secret = self._ssm.get_parameter(
                    parameter_path(self._environment, "stripe", "webhook_secret")
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to get webhook secret: {e}") from e
        return self._webhook_secret

    def create_refund_intent(
        self,
        *,
        payment_intent_id: str,
        amount_cents: int,
        refund_id: str,
    ) -> dict:
        """Verify a PaymentIntent can cover a refund and reserve an intent ID.

        No money moves here. The intent ID is later used as the idempotency
        key when the refund is executed, so confirming twice cannot refund
        twice.

        Args:
            payment_intent_id: Stripe PaymentIntent ID (pi_xxx).
            amount_cents: Amount that will be refunded, in cents.
            refund_id: Refund request the intent belongs to.

        Returns:
            Dict with:
                - refund_intent_id: New refund intent ID (rfi_xxx)
                - payment_intent_id: Verified PaymentIntent ID
                - amount: Amount in cents

        Raises:
            StripeServiceError: If the PaymentIntent cannot cover the refund.
        """
        client = self._get_client()

        try:
            intent = client.payment_intents.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe PaymentIntent lookup failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to verify payment intent: {e}",
                stripe_error_code=error_code,
            ) from e

        if intent.status != "succeeded":
            raise StripeServiceError(
                f"PaymentIntent {payment_intent_id} is '{intent.status}', not 'succeeded'"
            )
        if (intent.amount_received or 0) < amount_cents:
            raise StripeServiceError(
                f"PaymentIntent {payment_intent_id} received {intent.amount_received} cents, "
                f"cannot refund {amount_cents}"
            )

        refund_intent_id = f"rfi_{uuid.uuid4().hex[:24]}"
        logger.info(
            "Refund intent %s created for refund %s (PaymentIntent %s, %d cents)",
            refund_intent_id,
            refund_id,
            payment_intent_id,
            amount_cents,
        )
        return {
            "refund_intent_id": refund_intent_id,
            "payment_intent_id": payment_intent_id,
            "amount": amount_cents,
        }

    def create_refund(
        self,
        *,
        payment_intent_id: str,
        amount_cents: int,
        reason: str | None = None,
        idempotency_key: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> dict:
        """Create a refund for a payment.

        Args:
            payment_intent_id: Stripe PaymentIntent ID (pi_xxx).
            amount_cents: Refund amount in cents.
            reason: Reason for refund (for records).
            idempotency_key: Key that makes repeated calls return the same refund.
            metadata: Additional metadata to attach to the refund.

        Returns:
            Dict with refund details:
                - refund_id: Stripe refund ID
                - amount: Refunded amount in cents
                - status: Refund status (succeeded, pending, failed, canceled)

        Raises:
            StripeServiceError: If refund creation fails or times out.
        """
        client = self._get_client()

        refund_metadata: dict[str, str] = dict(metadata or {})
        if reason:
            refund_metadata["reason"] = reason[:500]

        params: dict = {"payment_intent": payment_intent_id, "amount": amount_cents}
        if refund_metadata:
            params["metadata"] = refund_metadata

        options: dict = {}
        if idempotency_key:
            options["idempotency_key"] = f"refund_{idempotency_key}"

        try:
            logger.info(
                "Creating refund for PaymentIntent %s, amount %d cents",
                payment_intent_id,
                amount_cents,
            )

            refund = client.refunds.create(params=params, options=options)

            logger.info(
                "Refund created: %s for PaymentIntent %s (status %s)",
                refund.id,
                payment_intent_id,
                refund.status,
            )

            return {
                "refund_id": refund.id,
                "amount": refund.amount,
                "status": refund.status,
            }

        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe refund creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create refund: {e}",
                stripe_error_code=error_code,
            ) from e

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict:
        """Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Parsed Stripe event dictionary.

        Raises:
            StripeServiceError: If signature is invalid.
        """
        webhook_secret = self._get_webhook_secret()

        try:
            stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise StripeServiceError("Invalid webhook signature") from e

        # Parse the raw body so nested objects are plain dicts
        event: dict = json.loads(payload)
        logger.info("Webhook signature verified for event: %s", event.get("id"))
        return event

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """Compute SHA-256 hash of webhook payload for deduplication."""
        return hashlib.sha256(payload).hexdigest()


@lru_cache(maxsize=1)
def get_stripe_service() -> StripeService:
    """Get the shared StripeService instance (singleton pattern)."""
    return StripeService()
