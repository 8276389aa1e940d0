"""
Notification collaborator.

Delivery itself lives outside this service. The engine only hands over a
(user, title, message) triple after its transaction has committed, and a
delivery failure never undoes the business change that triggered it.
"""

from typing import Protocol

from tiffin.core.logging import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    def notify(self, user_id: str, title: str, message: str) -> None:
        ...


class LoggingNotifier:
    """Default notifier: records the notification in the application log."""

    def notify(self, user_id: str, title: str, message: str) -> None:
        logger.info(
            f"Notification queued: {title}",
            extra={"user_id": user_id, "notification_title": title, "notification_body": message},
        )


def send_notification(notifier: Notifier, user_id: str, title: str, message: str) -> bool:
    """Fire-and-forget delivery. Returns False when the notifier raised."""
    try:
        notifier.notify(user_id, title, message)
        return True
    except Exception as exc:
        logger.warning(
            f"Notification delivery failed: {exc}",
            extra={"user_id": user_id, "notification_title": title},
        )
        return False
