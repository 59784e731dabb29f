"""Push typed frames to the open websockets of one or more profiles.

Publishing is synchronous and may happen on the event loop (websocket
handlers) or on a worker thread (sync endpoints, change feed callbacks). On
the loop the send is scheduled as a task; from an anyio worker thread it runs
on the loop through :func:`anyio.from_thread.run`.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Iterable

from anyio import from_thread

from .manager import RealtimeConnectionManager, connection_manager

logger = logging.getLogger(__name__)


def build_frame(event_type: str, payload: Any) -> dict[str, Any]:
    """Return the wire frame ``{"type": ..., "data": ...}`` for an event."""

    return {"type": event_type, "data": copy.deepcopy(payload)}


class RealtimeEventPublisher:
    def __init__(self, connections: RealtimeConnectionManager) -> None:
        self._connections = connections

    def publish(self, profile_ids: Iterable[int], *, event_type: str, payload: Any) -> None:
        """Send one ``event_type`` frame to each distinct connected profile."""

        frame = build_frame(event_type, payload)
        delivered_to: set[int] = set()
        for profile_id in profile_ids:
            if not profile_id or profile_id in delivered_to:
                continue
            delivered_to.add(profile_id)
            if self._connections.is_connected(profile_id):
                self._deliver(profile_id, frame)

    def publish_to(self, profile_id: int, *, event_type: str, payload: Any) -> None:
        self.publish([profile_id], event_type=event_type, payload=payload)

    def _deliver(self, profile_id: int, frame: dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            loop.create_task(self._connections.send(profile_id, frame))
            return
        try:
            from_thread.run(self._connections.send, profile_id, frame)
        except RuntimeError:
            logger.warning(
                "No event loop reachable to deliver %s to profile %s",
                frame["type"],
                profile_id,
            )


realtime_event_publisher = RealtimeEventPublisher(connection_manager)


def dispatch_realtime_event(
    profile_ids: Iterable[int], *, event_type: str, payload: Any
) -> None:
    """Publish through the process-wide publisher."""

    realtime_event_publisher.publish(profile_ids, event_type=event_type, payload=payload)


__all__ = [
    "RealtimeEventPublisher",
    "build_frame",
    "dispatch_realtime_event",
    "realtime_event_publisher",
]
