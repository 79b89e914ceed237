"""
Per-category notification store.

One ``CategoryStore`` per category owns the remote CRUD calls and the list
last confirmed by the service. Mutations never touch the list; callers
relist to observe the authoritative state.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from .categories import Category, CategorySpec, NotificationItem
from .pipeline import RequestPipeline
from .view import ViewSinks

log = structlog.get_logger()


class CategoryStore:
    """Remote operations and current item list for a single category."""

    def __init__(self, spec: CategorySpec, pipeline: RequestPipeline, sinks: ViewSinks):
        self._spec = spec
        self._pipeline = pipeline
        self._sinks = sinks
        self._items: list[NotificationItem] = []
        # Sequence stamps: a list() response is applied only if no
        # later-issued list() has been applied already.
        self._issued = 0
        self._applied = 0

    @property
    def category(self) -> Category:
        return self._spec.category

    @property
    def spec(self) -> CategorySpec:
        return self._spec

    @property
    def items(self) -> list[NotificationItem]:
        return list(self._items)

    async def list(self) -> list[NotificationItem]:
        """Fetch the category's notifications and replace the current list."""
        self._issued += 1
        stamp = self._issued

        data = await self._pipeline.request("GET", self._spec.list_path)

        if stamp < self._applied:
            log.debug(
                "store.stale_list_dropped",
                category=self.category.value,
                stamp=stamp,
                applied=self._applied,
            )
            return self.items

        self._applied = stamp
        self._items = self._parse(data)
        self._sinks.render(self._spec.list_id, self.items)
        return self.items

    async def create(self, message: str, recipient_id: int, **fields: Any) -> Any:
        """Send a new notification; returns the service's confirmation."""
        payload = self._spec.build_payload(message, recipient_id, fields)
        return await self._pipeline.request("POST", self._spec.create_path, payload)

    async def delete_one(self, item_id: int) -> Any:
        return await self._pipeline.request("DELETE", self._spec.delete_path(item_id))

    async def delete_all(self) -> Any:
        return await self._pipeline.request("DELETE", self._spec.delete_all_path)

    def _parse(self, data: Any) -> list[NotificationItem]:
        if not isinstance(data, list):
            log.warning(
                "store.malformed_list",
                category=self.category.value,
                payload_type=type(data).__name__,
            )
            return []

        items = []
        for raw in data:
            try:
                items.append(self._spec.item_model.model_validate(raw))
            except ValidationError:
                log.warning("store.malformed_item", category=self.category.value, item=raw)
        return items
