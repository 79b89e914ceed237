"""
Recording view and polling helpers shared by the tests.
"""

import asyncio
from dataclasses import dataclass, field

from notif_sync.categories import Category
from notif_sync.view import ViewSinks


@dataclass
class RecordingView:
    """View sinks that record every call."""
    active: Category | None = Category.CHAT
    renders: list = field(default_factory=list)
    toasts: list = field(default_factory=list)
    errors: list = field(default_factory=list)
    statuses: list = field(default_factory=list)

    def sinks(self) -> ViewSinks:
        return ViewSinks(
            render=lambda list_id, items: self.renders.append((list_id, items)),
            notify=lambda message, is_error: self.toasts.append((message, is_error)),
            log_error=self.errors.append,
            status=lambda connected, user_id: self.statuses.append((connected, user_id)),
            active_category=lambda: self.active,
        )

    def rendered(self, list_id: str) -> list:
        return [items for rendered_id, items in self.renders if rendered_id == list_id]

    def error_toasts(self) -> list:
        return [message for message, is_error in self.toasts if is_error]

    def push_toasts(self) -> list:
        return [message for message, is_error in self.toasts if not is_error]


async def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.05)
    return predicate()
