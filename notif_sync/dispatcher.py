"""
Routing of pushes and local mutations to category stores.

A push is always toasted, but only the category whose tab is active is
relisted. Skipped categories are tracked as stale and refreshed when their
tab is activated.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from .categories import Category
from .metrics import MetricsCollector
from .pipeline import PipelineError
from .realtime import PushedEvent
from .store import CategoryStore

log = structlog.get_logger()

_TYPE_NAMES = {
    "CHAT": Category.CHAT,
    "CONSENT": Category.CONSENT_REQUEST,
    "CONSENT_REQUEST": Category.CONSENT_REQUEST,
    "ONE_WAY": Category.ONE_WAY,
}


def infer_category(payload: dict[str, Any]) -> Category | None:
    """Category named by an explicit ``type`` field, else implied by payload shape."""
    kind = payload.get("type")
    if isinstance(kind, str) and kind.upper() in _TYPE_NAMES:
        return _TYPE_NAMES[kind.upper()]
    if "chatId" in payload or "chatType" in payload:
        return Category.CHAT
    if "consentRequestId" in payload:
        return Category.CONSENT_REQUEST
    return None


class SyncDispatcher:
    def __init__(
        self,
        stores: dict[Category, CategoryStore],
        active_category: Callable[[], Category | None],
        notify: Callable[[str, bool], None],
        metrics: MetricsCollector | None = None,
    ):
        self._stores = stores
        self._active_category = active_category
        self._notify = notify
        self._metrics = metrics
        self._stale: set[Category] = set()

    @property
    def stale(self) -> set[Category]:
        return set(self._stale)

    async def on_push(self, event: PushedEvent) -> None:
        self._notify(f"New Notification: {event.message}", False)

        active = self._active_category()
        # Shapeless payloads refresh whatever the user is looking at.
        category = infer_category(event.payload) or active
        if category is None:
            return
        self._count("pushes_routed_total", category)

        if category == active:
            await self._relist(category)
        else:
            self._mark_stale(category)

    async def on_local_mutation(self, category: Category) -> None:
        if category == self._active_category():
            await self._relist(category)
        else:
            self._mark_stale(category)

    async def on_tab_activated(self, category: Category) -> None:
        await self._relist(category)

    async def refresh_all(self) -> None:
        for category in self._stores:
            await self._relist(category)

    def _mark_stale(self, category: Category) -> None:
        self._stale.add(category)
        self._count("stale_marks_total", category)
        log.debug("dispatcher.marked_stale", category=category.value)

    def _count(self, name: str, category: Category) -> None:
        if self._metrics:
            self._metrics.inc(name, category=category)

    async def _relist(self, category: Category) -> None:
        self._count("relists_total", category)
        try:
            await self._stores[category].list()
        except PipelineError as exc:
            self._count("relist_failures_total", category)
            # Already logged and toasted by the pipeline.
            log.debug("dispatcher.relist_failed", category=category.value, cause=exc.cause.value)
            return
        self._stale.discard(category)
