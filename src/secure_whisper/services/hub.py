# src/secure_whisper/services/hub.py
"""Live fan-out of new messages to subscribed connections.

The hub owns every live connection and its set of subscribed chat ids. A
broadcast snapshots the matching open connections under the hub lock and
hands the frame to each connection's bounded outbound queue; a per-connection
pump task drains the queue into the transport. A slow or stalled client
therefore only ever delays itself.

Delivery is best effort and at most once, to currently connected subscribers
only. Clients catch up through message history after (re)subscribing.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import threading
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, Protocol

__all__ = ["ConnectionState", "FanoutHub", "HubConnection", "Transport"]

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256

_CONNECTION_IDS = itertools.count(1)


class ConnectionState(Enum):
    """Lifecycle of a hub connection."""

    CONNECTING = "connecting"
    OPEN = "open"  # subscriptions mutable
    CLOSED = "closed"  # terminal, subscriptions discarded


class Transport(Protocol):
    """Duplex channel to one client."""

    @property
    def is_open(self) -> bool:
        """Return True while frames can still be sent."""
        ...

    async def send_text(self, data: str) -> None:
        """Send one serialized frame."""
        ...


class HubConnection:
    """A live client connection as tracked by :class:`FanoutHub`.

    Only the hub mutates the subscription set; everyone else sees it through
    the read-only :attr:`subscriptions` view.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        queue_size: int,
        on_send_failure: Callable[[HubConnection], None],
    ) -> None:
        self.id = next(_CONNECTION_IDS)
        self.transport = transport
        self.state = ConnectionState.CONNECTING
        self.dropped_frames = 0
        self._subscriptions: set[str] = set()
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._loop = asyncio.get_running_loop()
        self._on_send_failure = on_send_failure
        self._pump: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"HubConnection(id={self.id}, state={self.state.value})"

    @property
    def subscriptions(self) -> frozenset[str]:
        """Return the chat ids this connection currently listens to."""
        return frozenset(self._subscriptions)

    @property
    def is_open(self) -> bool:
        """Return True if the connection is registered and its transport is open."""
        return self.state is ConnectionState.OPEN and self.transport.is_open

    def _start(self) -> None:
        self.state = ConnectionState.OPEN
        self._pump = self._loop.create_task(self._run_pump())

    def _close(self) -> None:
        self.state = ConnectionState.CLOSED
        self._subscriptions.clear()
        while True:
            try:
                self._outbox.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._outbox.task_done()
        pump = self._pump
        self._pump = None
        if pump is not None and pump is not _current_task():
            pump.cancel()

    def enqueue(self, frame: str) -> bool:
        """Queue a serialized frame for sending; safe to call from any thread.

        When the queue is full the oldest pending frame is dropped.
        """
        if self.state is ConnectionState.CLOSED:
            return False
        if _running_loop() is self._loop:
            self._enqueue_now(frame)
        else:
            self._loop.call_soon_threadsafe(self._enqueue_now, frame)
        return True

    def _enqueue_now(self, frame: str) -> None:
        if self.state is ConnectionState.CLOSED:
            return
        if self._outbox.full():
            self._outbox.get_nowait()
            self._outbox.task_done()
            self.dropped_frames += 1
            logger.warning("Outbound queue full for connection %s; dropped oldest frame", self.id)
        self._outbox.put_nowait(frame)

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to the transport."""
        await self._outbox.join()

    async def _run_pump(self) -> None:
        while True:
            frame = await self._outbox.get()
            try:
                await self.transport.send_text(frame)
            except Exception as err:
                logger.warning("Send to connection %s failed, closing it: %s", self.id, err)
                self._outbox.task_done()
                self._on_send_failure(self)
                return
            self._outbox.task_done()


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _current_task() -> asyncio.Task[Any] | None:
    if _running_loop() is None:
        return None
    return asyncio.current_task()


def _frame(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), default=str)


class FanoutHub:
    """Registry of live connections and their chat subscriptions."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        if queue_size < 1:
            raise ValueError("queue_size must be positive")
        self._queue_size = queue_size
        self._connections: dict[int, HubConnection] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def connect(self, transport: Transport) -> HubConnection:
        """Register a new connection with no subscriptions.

        Must be called from the event loop that will serve the connection.
        """
        connection = HubConnection(
            transport,
            queue_size=self._queue_size,
            on_send_failure=self.disconnect,
        )
        with self._lock:
            self._connections[connection.id] = connection
            connection._start()
        logger.debug("Connection %s opened", connection.id)
        return connection

    def disconnect(self, connection: HubConnection) -> None:
        """Forget ``connection`` and its subscriptions; idempotent."""
        with self._lock:
            self._connections.pop(connection.id, None)
            if connection.state is ConnectionState.CLOSED:
                return
            connection._close()
        logger.debug("Connection %s closed", connection.id)

    def subscribe(self, connection: HubConnection, chat_id: str) -> bool:
        """Add ``chat_id`` to the connection's subscriptions and acknowledge it."""
        with self._lock:
            if self._connections.get(connection.id) is not connection:
                return False
            connection._subscriptions.add(chat_id)
        connection.enqueue(_frame({"type": "subscribed", "chatId": chat_id}))
        return True

    def unsubscribe(self, connection: HubConnection, chat_id: str) -> bool:
        """Remove ``chat_id`` from the connection's subscriptions and acknowledge it."""
        with self._lock:
            if self._connections.get(connection.id) is not connection:
                return False
            connection._subscriptions.discard(chat_id)
        connection.enqueue(_frame({"type": "unsubscribed", "chatId": chat_id}))
        return True

    def broadcast(self, chat_id: str, message: Mapping[str, Any]) -> int:
        """Queue ``message`` for every open connection subscribed to ``chat_id``.

        Returns the number of connections the message was queued for.
        """
        with self._lock:
            recipients = [
                connection
                for connection in self._connections.values()
                if chat_id in connection._subscriptions and connection.is_open
            ]
        if not recipients:
            return 0

        frame = _frame({"type": "message", "message": dict(message)})
        return sum(1 for connection in recipients if connection.enqueue(frame))

    def handle_frame(
        self,
        connection: HubConnection,
        raw: str | bytes,
        *,
        can_subscribe: Callable[[str], bool] | None = None,
    ) -> None:
        """Apply one client frame; malformed or unknown frames are ignored.

        ``can_subscribe`` lets the caller veto subscriptions to chats the
        connected user does not take part in.
        """
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError, UnicodeDecodeError):
            logger.debug("Ignoring malformed frame on connection %s", connection.id)
            return
        if not isinstance(payload, dict):
            return

        frame_type = payload.get("type")
        chat_id = payload.get("chatId")
        if not isinstance(chat_id, str) or not chat_id:
            return

        if frame_type == "subscribe":
            if can_subscribe is not None and not can_subscribe(chat_id):
                logger.debug("Connection %s may not subscribe to %s", connection.id, chat_id)
                return
            self.subscribe(connection, chat_id)
        elif frame_type == "unsubscribe":
            self.unsubscribe(connection, chat_id)

    def shutdown(self) -> None:
        """Close every connection; used when the application stops."""
        with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
            for connection in connections:
                connection._close()
        if connections:
            logger.info("Fan-out hub closed %d connection(s)", len(connections))
