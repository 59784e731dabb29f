"""Endpoints and websocket handler for the notification inbox."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
)
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    archive_notification as archive_notification_uc,
    get_unread_count as get_unread_count_uc,
    list_high_priority as list_high_priority_uc,
    list_notifications as list_notifications_uc,
    mark_all_as_read as mark_all_as_read_uc,
    mark_as_read as mark_as_read_uc,
)
from app.domain.entities import NotificationCategory, Profile
from app.domain.errors import NotAuthenticatedError, StudyBuddyError
from app.infrastructure.database import SessionLocal, get_db
from app.infrastructure.notifications import connection_manager, serialize_notification
from app.infrastructure.repositories import NotificationRepository
from app.interfaces.api.dependencies import get_current_profile, resolve_current_profile
from app.interfaces.api.routes_helpers import http_error_from
from app.interfaces.api.schemas import (
    MarkReadResponse,
    NotificationMarkReadRequest,
    NotificationPage,
    NotificationRead,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationPage)
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = False,
    category: NotificationCategory | None = None,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> NotificationPage:
    """Return a page of the authenticated user's inbox, newest first."""

    notifications, total = list_notifications_uc(
        db,
        current_profile.id,
        limit=limit,
        offset=offset,
        unread_only=unread_only,
        category=category,
    )
    return NotificationPage(
        items=[NotificationRead.from_entity(item) for item in notifications],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> UnreadCountRead:
    return UnreadCountRead(unread=get_unread_count_uc(db, current_profile.id))


@router.get("/high-priority", response_model=list[NotificationRead])
def high_priority(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> list[NotificationRead]:
    notifications = list_high_priority_uc(db, current_profile.id, limit=limit)
    return [NotificationRead.from_entity(item) for item in notifications]


@router.post("/read", response_model=MarkReadResponse)
def mark_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> MarkReadResponse:
    try:
        updated = mark_as_read_uc(db, current_profile.id, payload.unique_ids())
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return MarkReadResponse(updated=updated)


@router.post("/read-all", response_model=MarkReadResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> MarkReadResponse:
    try:
        updated = mark_all_as_read_uc(db, current_profile.id)
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return MarkReadResponse(updated=updated)


@router.post("/{notification_id}/archive", response_model=NotificationRead)
def archive(
    notification_id: int,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> NotificationRead:
    try:
        notification = archive_notification_uc(db, current_profile.id, notification_id)
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return NotificationRead.from_entity(notification)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications and alerts to the user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        profile = resolve_current_profile(token, session)
        pending_notifications = NotificationRepository(session).list_unread_for_user(
            profile.id
        )
    except (NotAuthenticatedError, HTTPException):
        await websocket.close(code=1008)
        return
    except StudyBuddyError:
        logger.exception("Could not load pending notifications")
        await websocket.close(code=1011)
        return
    finally:
        session.close()

    await connection_manager.connect(profile.id, websocket)
    try:
        if pending_notifications:
            await websocket.send_json(
                {
                    "type": "init",
                    "data": [serialize_notification(item) for item in pending_notifications],
                }
            )
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
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    ack_session = SessionLocal()
                    try:
                        mark_as_read_uc(ack_session, profile.id, ids)
                    except StudyBuddyError:
                        logger.exception("Could not acknowledge notifications %s", ids)
                    finally:
                        ack_session.close()
                continue
    except WebSocketDisconnect:
        pass
    finally:
        connection_manager.disconnect(profile.id, websocket)
