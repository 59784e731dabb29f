"""Registry of open realtime websockets keyed by profile."""

from __future__ import annotations

import logging
import threading
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class RealtimeConnectionManager:
    """Track every open inbox websocket of each profile.

    A profile may have several tabs open; each one receives every frame. The
    registry is read from worker threads, so membership changes are locked.
    """

    def __init__(self) -> None:
        self._sockets: dict[int, list[WebSocket]] = {}
        self._lock = threading.Lock()

    async def connect(self, profile_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        with self._lock:
            self._sockets.setdefault(profile_id, []).append(websocket)
            open_count = len(self._sockets[profile_id])
        logger.debug("Profile %s opened a realtime connection (%d open)", profile_id, open_count)

    def disconnect(self, profile_id: int, websocket: WebSocket) -> None:
        with self._lock:
            sockets = self._sockets.get(profile_id)
            if not sockets or websocket not in sockets:
                return
            sockets.remove(websocket)
            if not sockets:
                del self._sockets[profile_id]

    def is_connected(self, profile_id: int) -> bool:
        with self._lock:
            return bool(self._sockets.get(profile_id))

    def connection_count(self, profile_id: int | None = None) -> int:
        with self._lock:
            if profile_id is not None:
                return len(self._sockets.get(profile_id, ()))
            return sum(len(sockets) for sockets in self._sockets.values())

    async def send(self, profile_id: int, frame: dict[str, Any]) -> int:
        """Send ``frame`` to the profile's sockets and return how many got it.

        Sockets that fail to send are dropped from the registry.
        """

        with self._lock:
            sockets = list(self._sockets.get(profile_id, ()))
        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_json(frame)
            except Exception:  # pragma: no cover - closed sockets depend on the client
                logger.info("Dropping stale websocket of profile %s", profile_id)
                self.disconnect(profile_id, websocket)
            else:
                delivered += 1
        return delivered


connection_manager = RealtimeConnectionManager()


__all__ = ["RealtimeConnectionManager", "connection_manager"]
