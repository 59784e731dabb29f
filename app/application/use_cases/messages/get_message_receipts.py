"""Use case for reading the per-recipient receipts of a message."""

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import MessageStatusReceipt
from app.domain.errors import MessageNotFoundError
from app.infrastructure.repositories import GroupMessageRepository, MessageStatusRepository


def get_message_receipts(session: Session, message_id: int) -> Sequence[MessageStatusReceipt]:
    """Return every status row of ``message_id`` with the recipient's profile."""

    if GroupMessageRepository(session).get(message_id) is None:
        raise MessageNotFoundError(f"Message with id {message_id} not found")
    return MessageStatusRepository(session).get_statuses_for_message(message_id)
