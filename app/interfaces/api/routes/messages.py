"""Group chat endpoints and the realtime chat stream."""

from __future__ import annotations

import asyncio
import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from app.application.use_cases.messages import (
    CacheChange,
    MessageDeliveryReconciler,
    delete_message as delete_message_uc,
    edit_message as edit_message_uc,
    get_message_receipts as get_message_receipts_uc,
    list_group_messages as list_group_messages_uc,
    mark_group_seen as mark_group_seen_uc,
    send_message as send_message_uc,
)
from app.domain.entities import Profile
from app.domain.errors import NotAuthenticatedError, StudyBuddyError
from app.infrastructure.database import SessionLocal, get_db
from app.interfaces.api.dependencies import get_current_profile, resolve_current_profile
from app.interfaces.api.routes_helpers import http_error_from
from app.interfaces.api.schemas import (
    MessageCreate,
    MessageRead,
    MessageReceiptRead,
    MessageStatusRead,
    MessageUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])


@router.post(
    "/groups/{group_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
)
def post_message(
    group_id: int,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> MessageRead:
    try:
        message = send_message_uc(
            db, group_id=group_id, sender_id=current_profile.id, content=payload.content
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return MessageRead.from_entity(message)


@router.get("/groups/{group_id}/messages", response_model=list[MessageRead])
def get_messages(
    group_id: int,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> list[MessageRead]:
    """Return the latest messages; fetched messages count as delivered."""

    try:
        messages = list_group_messages_uc(
            db, group_id=group_id, viewer_id=current_profile.id, limit=limit
        )
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return [MessageRead.from_entity(message) for message in messages]


@router.post("/groups/{group_id}/seen", response_model=list[MessageStatusRead])
def mark_seen(
    group_id: int,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> list[MessageStatusRead]:
    try:
        statuses = mark_group_seen_uc(db, group_id=group_id, user_id=current_profile.id)
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return [MessageStatusRead.from_entity(item) for item in statuses]


@router.get("/messages/{message_id}/statuses", response_model=list[MessageReceiptRead])
def message_statuses(
    message_id: int,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> list[MessageReceiptRead]:
    try:
        receipts = get_message_receipts_uc(db, message_id)
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return [MessageReceiptRead.from_entity(item) for item in receipts]


@router.patch("/messages/{message_id}", response_model=MessageRead)
def update_message(
    message_id: int,
    payload: MessageUpdate,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> MessageRead:
    try:
        message = edit_message_uc(
            db, message_id=message_id, editor_id=current_profile.id, content=payload.content
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return MessageRead.from_entity(message)


@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_message(
    message_id: int,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> Response:
    try:
        delete_message_uc(db, message_id=message_id, user_id=current_profile.id)
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _change_frame(change: CacheChange) -> dict:
    return {
        "type": change.kind.value,
        "data": MessageRead.from_entity(change.message).model_dump(mode="json"),
    }


async def _forward_changes(websocket: WebSocket, changes: asyncio.Queue) -> None:
    while True:
        change = await changes.get()
        await websocket.send_json(_change_frame(change))


@router.websocket("/groups/{group_id}/ws")
async def group_messages_websocket(websocket: WebSocket, group_id: int) -> None:
    """Stream one group's messages and delivery ticks to the viewer.

    The first frame carries the latest messages. Afterwards every cache
    change is pushed as it happens. The client may send ``ping`` and ``seen``.
    """

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        profile = resolve_current_profile(token, session)
        initial = list_group_messages_uc(session, group_id=group_id, viewer_id=profile.id)
    except NotAuthenticatedError:
        await websocket.close(code=1008)
        return
    except StudyBuddyError:
        logger.exception("Could not load messages of group %s", group_id)
        await websocket.close(code=1011)
        return
    finally:
        session.close()

    await websocket.accept()
    loop = asyncio.get_running_loop()
    changes: asyncio.Queue = asyncio.Queue()
    reconciler = MessageDeliveryReconciler(
        profile.id,
        on_change=lambda change: loop.call_soon_threadsafe(changes.put_nowait, change),
    )
    forwarder: asyncio.Task | None = None
    with reconciler.subscribe(group_id, initial) as handle:
        try:
            await websocket.send_json(
                {
                    "type": "init",
                    "data": [
                        MessageRead.from_entity(message).model_dump(mode="json")
                        for message in handle.messages
                    ],
                }
            )
            forwarder = asyncio.create_task(_forward_changes(websocket, changes))
            while True:
                try:
                    message = await websocket.receive_json()
                except WebSocketDisconnect:
                    raise
                except ValueError:
                    continue
                if not isinstance(message, dict):
                    continue

                message_type = message.get("type")
                if message_type == "ping":
                    await websocket.send_json({"type": "pong"})
                elif message_type == "seen":
                    seen_session = SessionLocal()
                    try:
                        mark_group_seen_uc(seen_session, group_id=group_id, user_id=profile.id)
                    except StudyBuddyError:
                        logger.exception("Could not mark group %s seen", group_id)
                    finally:
                        seen_session.close()
        except WebSocketDisconnect:
            logger.debug("Chat websocket of user %s closed", profile.id)
        finally:
            if forwarder is not None:
                forwarder.cancel()
            reconciler.close()
