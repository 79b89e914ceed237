"""
Realtime push channel over STOMP/WebSocket.

Maintains exactly one subscription to the current user's topic:
- ``connect`` supersedes any previous subscription before opening a new one
- The initial refresh runs once the broker has acknowledged the connection
- Transport errors flip the channel to DISCONNECTED; there is no
  automatic reconnection
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Coroutine
from urllib.parse import urlparse

import structlog
import websockets
from websockets.exceptions import WebSocketException

from .auth import Session
from .metrics import MetricsCollector
from .stomp import (
    Frame,
    FrameError,
    connect_frame,
    decode_frames,
    disconnect_frame,
    subscribe_frame,
    unsubscribe_frame,
)

log = structlog.get_logger()

SUBPROTOCOLS = ["v12.stomp", "v11.stomp", "v10.stomp"]


class ChannelState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


class ChannelError(Exception):
    """The push channel could not be established or was rejected by the broker."""


@dataclass
class PushedEvent:
    """A server-originated notification. Never stored, only triggers a relist."""
    message: str
    target_user_id: int | None
    payload: dict[str, Any] = field(default_factory=dict)
    destination: str | None = None


PushHandler = Callable[[PushedEvent], Coroutine[Any, Any, None]]
ReadyHandler = Callable[[], Coroutine[Any, Any, None]]
StatusHandler = Callable[[bool, "int | None"], None]


class RealtimeChannel:
    """
    Persistent STOMP subscription to ``/topic/user/{id}``.

    Handlers registered with ``on_push`` receive every delivered event;
    handlers registered with ``on_ready`` run after each successful connect.
    """

    def __init__(
        self,
        ws_url: str,
        status: StatusHandler,
        connect_timeout: float = 10.0,
        metrics: MetricsCollector | None = None,
    ):
        self._ws_url = ws_url
        self._status = status
        self._connect_timeout = connect_timeout
        self._metrics = metrics

        self._push_handlers: list[PushHandler] = []
        self._ready_handlers: list[ReadyHandler] = []
        self._state = ChannelState.DISCONNECTED
        self._session: Session | None = None
        self._ws: Any = None
        self._sub_id: str | None = None
        self._sub_count = 0
        self._task: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ChannelState.CONNECTED

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def subscription_id(self) -> str | None:
        return self._sub_id

    def on_push(self, handler: PushHandler) -> None:
        """Register a push handler."""
        self._push_handlers.append(handler)

    def on_ready(self, handler: ReadyHandler) -> None:
        """Register a handler run once the subscription is live."""
        self._ready_handlers.append(handler)

    async def connect(self, session: Session) -> None:
        """Subscribe to the session's topic, replacing any current subscription."""
        async with self._lock:
            await self._teardown()
            self._state = ChannelState.CONNECTING
            log.info("realtime.connecting", url=self._ws_url, topic=session.topic)

            ws = None
            subscribed = False
            try:
                ws = await websockets.connect(
                    self._ws_url,
                    subprotocols=SUBPROTOCOLS,
                    open_timeout=self._connect_timeout,
                )
                host = urlparse(self._ws_url).hostname or "localhost"
                await ws.send(connect_frame(host).encode())
                await asyncio.wait_for(self._await_connected(ws), self._connect_timeout)

                self._sub_count += 1
                sub_id = f"sub-{self._sub_count}"
                await ws.send(subscribe_frame(session.topic, sub_id).encode())
                subscribed = True
            except (OSError, asyncio.TimeoutError, WebSocketException, FrameError, ChannelError) as exc:
                log.warning("realtime.connect_failed", url=self._ws_url, error=str(exc))
                await self._abandon(ws)
                self._status(False, None)
                if isinstance(exc, ChannelError):
                    raise
                raise ChannelError(f"Could not connect to {self._ws_url}: {exc}") from exc
            finally:
                # Cancellation or an unexpected error must not leak the socket.
                if not subscribed and self._state is ChannelState.CONNECTING:
                    await self._abandon(ws)

            self._ws = ws
            self._sub_id = sub_id
            self._session = session
            self._state = ChannelState.CONNECTED
            if self._metrics:
                self._metrics.set_gauge("subscriptions_active", 1)
            log.info("realtime.connected", topic=session.topic, subscription=sub_id)
            self._status(True, session.user_id)

            for handler in self._ready_handlers:
                try:
                    await handler()
                except Exception:
                    log.exception("realtime.ready_handler_error", topic=session.topic)

            self._task = asyncio.create_task(self._read_loop(ws))

    async def disconnect(self) -> None:
        """Explicit teardown of the current subscription."""
        async with self._lock:
            was_connected = self.connected
            await self._teardown()
            if was_connected:
                self._status(False, None)
            log.info("realtime.disconnected")

    async def _await_connected(self, ws: Any) -> None:
        while True:
            message = await ws.recv()
            for frame in decode_frames(message):
                if frame.command == "CONNECTED":
                    return
                if frame.command == "ERROR":
                    raise ChannelError(_error_text(frame))

    async def _read_loop(self, ws: Any) -> None:
        try:
            async for message in ws:
                for frame in decode_frames(message):
                    if frame.command == "MESSAGE":
                        await self._deliver(frame)
                    elif frame.command == "ERROR":
                        raise ChannelError(_error_text(frame))
            log.info("realtime.closed_by_server")
        except (WebSocketException, OSError, FrameError, ChannelError) as exc:
            log.warning("realtime.connection_lost", error=str(exc))
        except Exception:
            log.exception("realtime.reader_error")

        # Only the reader of the live socket may flip the channel state.
        if self._ws is ws:
            self._ws = None
            self._task = None
            self._sub_id = None
            self._mark_disconnected()
            self._status(False, None)
        await ws.close()

    async def _deliver(self, frame: Frame) -> None:
        try:
            payload = json.loads(frame.body)
        except json.JSONDecodeError:
            log.warning("realtime.parse_error", data=frame.body[:200])
            return
        if not isinstance(payload, dict):
            log.warning("realtime.unexpected_payload", data=frame.body[:200])
            return

        target = payload.get("recipientId")
        if target is None and self._session:
            target = self._session.user_id
        event = PushedEvent(
            message=str(payload.get("message", "")),
            target_user_id=target,
            payload=payload,
            destination=frame.headers.get("destination"),
        )
        if self._metrics:
            self._metrics.inc("pushes_received_total")
        log.info("realtime.push", destination=event.destination, target=event.target_user_id)

        for handler in self._push_handlers:
            try:
                await handler(event)
            except Exception:
                log.exception("realtime.handler_error", destination=event.destination)

    async def _teardown(self) -> None:
        ws, task, sub_id = self._ws, self._task, self._sub_id
        self._ws = None
        self._task = None
        self._sub_id = None

        if task and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                log.exception("realtime.reader_failed", subscription=sub_id)

        if ws is not None:
            try:
                if sub_id:
                    await ws.send(unsubscribe_frame(sub_id).encode())
                await ws.send(disconnect_frame().encode())
            except WebSocketException as exc:
                log.debug("realtime.teardown_send_failed", error=str(exc))
            await ws.close()
            log.info("realtime.subscription_closed", subscription=sub_id)

        self._mark_disconnected()

    async def _abandon(self, ws: Any) -> None:
        """Close a socket that never became the live subscription."""
        if ws is not None:
            await ws.close()
        self._mark_disconnected()

    def _mark_disconnected(self) -> None:
        self._state = ChannelState.DISCONNECTED
        self._session = None
        if self._metrics:
            self._metrics.set_gauge("subscriptions_active", 0)


def _error_text(frame: Frame) -> str:
    return frame.headers.get("message") or frame.body or "STOMP error"
