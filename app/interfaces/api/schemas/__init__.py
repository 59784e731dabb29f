from .message import (
    MessageCreate,
    MessageRead,
    MessageReceiptRead,
    MessageStatusRead,
    MessageUpdate,
)
from .notification import (
    MarkReadResponse,
    NotificationMarkReadRequest,
    NotificationPage,
    NotificationRead,
    UnreadCountRead,
)
from .preferences import NotificationPreferencesRead, NotificationPreferencesUpdate

__all__ = [
    "MarkReadResponse",
    "MessageCreate",
    "MessageRead",
    "MessageReceiptRead",
    "MessageStatusRead",
    "MessageUpdate",
    "NotificationMarkReadRequest",
    "NotificationPage",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "NotificationRead",
    "UnreadCountRead",
]
