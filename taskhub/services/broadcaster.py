"""
Realtime fan-out to connected websocket sessions
"""

import asyncio
from uuid import uuid4
from typing import Any, Dict, Optional, Protocol, Set
from taskhub.config.constants import CLIENT_EVENT_RELAYS, EVENT_CONNECTED
from taskhub.utils.logger import logger


class Session(Protocol):
    """Anything that can push a JSON frame (e.g. starlette WebSocket)"""

    async def send_json(self, data: Any) -> None:
        ...


class Broadcaster:
    """
    Registry of connected sessions with fire-and-forget multicast.

    No persistence, ordering or delivery confirmation: a session that is
    not connected when an event goes out simply misses it.
    """

    def __init__(self):
        self.logger = logger
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    async def connect(self, session: Session, session_id: Optional[str] = None) -> str:
        """
        Register a session and greet it with its id

        The greeting is sent under the registry lock, so it is always the
        first frame the session sees.

        Returns:
            Session id used for exclusion and disconnect
        """
        session_id = session_id or uuid4().hex
        async with self._lock:
            await session.send_json({"event": EVENT_CONNECTED, "data": {"sessionId": session_id}})
            self._sessions[session_id] = session
        self.logger.info(f"[Broadcaster] Session connected: {session_id} (total {self.session_count})")
        return session_id

    async def disconnect(self, session_id: str):
        async with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            self.logger.info(f"[Broadcaster] Session disconnected: {session_id} (total {self.session_count})")

    async def broadcast(self, event: str, payload: Any, exclude: Optional[str] = None) -> int:
        """
        Push event to every session except `exclude`

        Args:
            event: Event name
            payload: JSON-serializable event data
            exclude: Session id to skip (usually the originator)

        Returns:
            Number of sessions the frame was delivered to
        """
        frame = {"event": event, "data": payload}
        delivered = 0
        dead = []

        async with self._lock:
            for session_id, session in self._sessions.items():
                if session_id == exclude:
                    continue
                try:
                    await session.send_json(frame)
                    delivered += 1
                except Exception as e:
                    self.logger.warning(f"[Broadcaster] Dropping session {session_id}: {e}")
                    dead.append(session_id)

            for session_id in dead:
                self._sessions.pop(session_id, None)

        self.logger.debug(f"[Broadcaster] '{event}' delivered to {delivered} sessions")
        return delivered

    def publish(self, event: str, payload: Any, exclude: Optional[str] = None) -> asyncio.Task:
        """Schedule a broadcast without waiting for it"""
        task = asyncio.create_task(self.broadcast(event, payload, exclude=exclude))
        self._pending.add(task)
        task.add_done_callback(self._on_published)
        return task

    def _on_published(self, task: asyncio.Task):
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(f"[Broadcaster] Fan-out failed: {task.exception()}")

    async def drain(self):
        """Wait for all scheduled broadcasts to finish"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def relay(self, session_id: str, event: str, payload: Any) -> bool:
        """
        Forward a client-originated event to every other session

        Args:
            session_id: Originating session
            event: Client event name (taskUpdate, actionLog, conflictDetected)
            payload: Event data, forwarded unchanged

        Returns:
            False if the event is unknown and was ignored
        """
        outgoing = CLIENT_EVENT_RELAYS.get(event)
        if outgoing is None:
            self.logger.warning(f"[Broadcaster] Ignoring unknown event '{event}' from {session_id}")
            return False

        if event == "conflictDetected" and isinstance(payload, dict):
            payload = {"taskId": payload.get("taskId"), "versions": payload.get("versions")}

        await self.broadcast(outgoing, payload, exclude=session_id)
        return True
