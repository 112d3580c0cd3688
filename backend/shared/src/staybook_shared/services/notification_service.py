"""In-app notifications for refund events.

Notifications are written to a DynamoDB table that the web app polls.
Admin notifications use the shared ``admins`` audience instead of one
record per admin.
"""

import datetime as dt
import uuid
from typing import Any

from staybook_shared.models.enums import NotificationType
from staybook_shared.services.dynamodb import DynamoDBService
from staybook_shared.utils.logging import get_logger

logger = get_logger(__name__)

ADMIN_AUDIENCE = "admins"


class NotificationService:
    """Stores user-facing notifications."""

    NOTIFICATIONS_TABLE = "notifications"

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        message: str,
        *,
        refund_id: str | None = None,
    ) -> str:
        """Store a notification for a user.

        Args:
            user_id: Recipient user ID (or the admin audience)
            notification_type: Kind of refund event
            message: Text shown to the recipient
            refund_id: Related refund request

        Returns:
            The new notification ID
        """
        notification_id = f"NTF-{uuid.uuid4().hex[:12].upper()}"
        item: dict[str, Any] = {
            "notification_id": notification_id,
            "user_id": user_id,
            "type": notification_type.value,
            "message": message,
            "is_read": False,
            "created_at": dt.datetime.now(dt.UTC).isoformat(),
        }
        if refund_id:
            item["refund_id"] = refund_id

        self.db.put_item(self.NOTIFICATIONS_TABLE, item)
        logger.info(
            "Notification %s (%s) stored for %s",
            notification_id,
            notification_type.value,
            user_id,
        )
        return notification_id

    def notify_admins(
        self,
        notification_type: NotificationType,
        message: str,
        *,
        refund_id: str | None = None,
    ) -> str:
        """Store a notification for every admin."""
        return self.notify(ADMIN_AUDIENCE, notification_type, message, refund_id=refund_id)
