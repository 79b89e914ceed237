"""
Notification client orchestrator.

Wires the pipeline, the three category stores, the dispatcher and the push
channel together, and exposes the user actions: connect, switch user,
select tab, send and delete.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Any

import structlog

from .auth import Session, TokenBuilder, build_token
from .categories import Category, build_specs
from .config import ClientConfig
from .dispatcher import SyncDispatcher
from .metrics import MetricsCollector
from .pipeline import RequestPipeline
from .realtime import RealtimeChannel
from .store import CategoryStore
from .view import ViewSinks

log = structlog.get_logger()

SHUTDOWN_TIMEOUT = 15.0


class NotificationClient:
    """
    Owns the current session and every component acting on its behalf.
    """

    def __init__(
        self,
        config: ClientConfig,
        sinks: ViewSinks,
        token_builder: TokenBuilder = build_token,
        session: Session | None = None,
    ):
        self._config = config
        self._sinks = sinks
        self._metrics = MetricsCollector()
        self._session = session or config.session.to_session()

        self._pipeline = RequestPipeline(
            base_url=config.backend.url,
            session_provider=lambda: self._session,
            sinks=sinks,
            token_builder=token_builder,
            verify_tls=config.backend.verify_tls,
            request_timeout=config.backend.request_timeout_seconds,
            metrics=self._metrics,
        )
        self._stores = {
            category: CategoryStore(spec, self._pipeline, sinks)
            for category, spec in build_specs(config.defaults).items()
        }
        self._dispatcher = SyncDispatcher(
            self._stores, sinks.active_category, sinks.notify, metrics=self._metrics
        )
        self._channel = RealtimeChannel(
            ws_url=config.backend.ws_url,
            status=sinks.status,
            connect_timeout=config.backend.connect_timeout_seconds,
            metrics=self._metrics,
        )
        self._channel.on_push(self._dispatcher.on_push)
        self._channel.on_ready(self._dispatcher.refresh_all)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def pipeline(self) -> RequestPipeline:
        return self._pipeline

    @property
    def channel(self) -> RealtimeChannel:
        return self._channel

    @property
    def dispatcher(self) -> SyncDispatcher:
        return self._dispatcher

    def store(self, category: Category) -> CategoryStore:
        return self._stores[category]

    async def start(self, connect: bool = True) -> None:
        """Open the HTTP client and, unless told otherwise, the push channel."""
        log.info("client.starting", user=self._session.user_id, role=self._session.role.value)
        await self._pipeline.open()
        if connect:
            await self._channel.connect(self._session)

    async def stop(self) -> None:
        await self._channel.disconnect()
        await self._pipeline.close()
        log.info("client.stopped", metrics=self._metrics.snapshot())

    async def __aenter__(self) -> NotificationClient:
        await self.start(connect=False)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def connect(self) -> None:
        """(Re)establish the push subscription for the current session."""
        await self._channel.connect(self._session)

    async def switch_session(self, session: Session) -> None:
        """Act as another user; the push subscription follows the session."""
        log.info("client.switch_session", user=session.user_id, role=session.role.value)
        self._session = session
        await self._channel.connect(session)

    async def select_tab(self, category: Category) -> None:
        await self._dispatcher.on_tab_activated(category)

    async def send(self, category: Category, message: str, recipient_id: int, **fields: Any) -> Any:
        result = await self._stores[category].create(message, recipient_id, **fields)
        await self._dispatcher.on_local_mutation(category)
        return result

    async def delete(self, category: Category, item_id: int) -> Any:
        result = await self._stores[category].delete_one(item_id)
        await self._dispatcher.on_local_mutation(category)
        return result

    async def delete_all(self, category: Category) -> Any:
        result = await self._stores[category].delete_all()
        await self._dispatcher.on_local_mutation(category)
        return result

    async def run_forever(self) -> None:
        """Connect and deliver pushes until SIGINT/SIGTERM."""
        shutdown = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown.set)

        try:
            await self.start()
            await shutdown.wait()
        finally:
            await asyncio.wait_for(self.stop(), timeout=SHUTDOWN_TIMEOUT)
