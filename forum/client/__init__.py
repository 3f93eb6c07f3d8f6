"""Client toolkit: HTTP client, optimistic commands and the notification poller."""

from .http import ForumApiError, ForumClient
from .optimistic import CommandState, OptimisticCommand, toggled
from .poller import NotificationPoller


__all__ = [
    "CommandState",
    "ForumApiError",
    "ForumClient",
    "NotificationPoller",
    "OptimisticCommand",
    "toggled",
]
