"""FastAPI dependency injection providers for shared services.

Services are built lazily and cached with @lru_cache, so each Lambda
container creates its boto3 and Stripe clients once.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── BookingStore
        ├── NotificationService
        └── RefundService (+ RefundPolicyService, StripeService)
                └── WebhookHandler

Testing:
    Use reset_services() to clear cached instances between tests, or
    override get_refund_service / get_webhook_handler with
    app.dependency_overrides.
"""

from functools import lru_cache

from staybook_shared.services.booking_store import BookingStore
from staybook_shared.services.dynamodb import get_dynamodb_service
from staybook_shared.services.notification_service import NotificationService
from staybook_shared.services.refund_policy_service import RefundPolicyService
from staybook_shared.services.refund_service import RefundService
from staybook_shared.services.stripe_service import StripeService, get_stripe_service
from staybook_shared.services.webhook_handler import WebhookHandler


@lru_cache
def get_booking_store() -> BookingStore:
    return BookingStore(db=get_dynamodb_service())


@lru_cache
def get_notification_service() -> NotificationService:
    return NotificationService(db=get_dynamodb_service())


@lru_cache
def get_refund_policy_service() -> RefundPolicyService:
    return RefundPolicyService()


def get_processor() -> StripeService:
    """Get the payment processor (the shared StripeService)."""
    return get_stripe_service()


@lru_cache
def get_refund_service() -> RefundService:
    """Get cached RefundService instance.

    Returns:
        RefundService configured with all required dependencies.
    """
    return RefundService(
        db=get_dynamodb_service(),
        bookings=get_booking_store(),
        policy=get_refund_policy_service(),
        processor=get_processor(),
        notifications=get_notification_service(),
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    return WebhookHandler(db=get_dynamodb_service(), refunds=get_refund_service())


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets the DynamoDB singleton, the Stripe client and settings.
    """
    from staybook_shared.config import get_settings
    from staybook_shared.services.dynamodb import reset_dynamodb_service

    get_booking_store.cache_clear()
    get_notification_service.cache_clear()
    get_refund_policy_service.cache_clear()
    get_refund_service.cache_clear()
    get_webhook_handler.cache_clear()
    get_stripe_service.cache_clear()
    get_settings.cache_clear()

    reset_dynamodb_service()
