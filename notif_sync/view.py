"""
View collaborators: the sinks the sync core renders into.

The sync core never touches a UI directly. It calls the callables bundled in
``ViewSinks``; ``ConsoleView`` is the terminal implementation used by the CLI.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, TextIO

from .categories import Category, NotificationItem


@dataclass
class ViewSinks:
    render: Callable[[str, list[NotificationItem]], None]
    notify: Callable[[str, bool], None]
    log_error: Callable[[Exception], None]
    status: Callable[[bool, int | None], None]
    active_category: Callable[[], Category | None]


class ConsoleView:
    """
    Terminal view: prints lists, toasts and a timestamped error log.

    Holds the active tab so pushes for other categories are only toasted.
    """

    def __init__(self, active: Category | None = Category.CHAT, out: TextIO | None = None):
        self._active = active
        self._out = out or sys.stdout
        self.error_log: list[str] = []

    @property
    def active(self) -> Category | None:
        return self._active

    def select(self, category: Category) -> None:
        self._active = category

    def sinks(self) -> ViewSinks:
        return ViewSinks(
            render=self.render,
            notify=self.notify,
            log_error=self.log_error,
            status=self.status,
            active_category=lambda: self._active,
        )

    def render(self, list_id: str, items: list[NotificationItem]) -> None:
        print(f"[{list_id}] {len(items)} notification(s)", file=self._out)
        for item in items:
            print(f"  - {item.message} (ID: {item.id})", file=self._out)

    def notify(self, message: str, is_error: bool) -> None:
        prefix = "!!" if is_error else "**"
        print(f"{prefix} {message}", file=self._out)

    def log_error(self, err: Exception) -> None:
        time = datetime.now().strftime("%H:%M:%S")
        entry = f"[{time}] {_describe(err)}"
        self.error_log.append(entry)
        print(entry, file=self._out)

    def status(self, connected: bool, user_id: int | None) -> None:
        if connected:
            print(f"Connected as User {user_id}", file=self._out)
        else:
            print("Disconnected", file=self._out)


def _describe(err: Exception) -> str:
    body: Any = getattr(err, "body", None)
    if body is None:
        return str(err)
    if isinstance(body, (dict, list)):
        return json.dumps(body)
    return str(body)
