"""Notifications module.

Fan-out of reply, mention and vote events, and the recipient's inbox.

Note: Router is not exported here to avoid circular imports.
Import directly from forum.notifications.router when needed.
"""

from .models import NOTIFICATIONS_TABLES_CQL, Notification, NotificationType
from .service import NotificationService, extract_mentions


__all__ = [
    "NOTIFICATIONS_TABLES_CQL",
    "Notification",
    "NotificationService",
    "NotificationType",
    "extract_mentions",
]
