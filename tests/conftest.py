"""
Shared fixtures for client integration tests.
"""

import asyncio
import random
from dataclasses import dataclass

import pytest
import uvicorn

from notif_sync.client import NotificationClient
from notif_sync.config import ClientConfig

from .helpers import RecordingView
from .mock_servers import _ServiceState, create_notification_app


class _UvicornServer:
    def __init__(self, app, host: str, port: int):
        self.config = uvicorn.Config(app, host=host, port=port, log_level="error")
        self.server = uvicorn.Server(self.config)
        self._task: asyncio.Task | None = None

    async def start(self):
        self._task = asyncio.create_task(self.server.serve())
        for _ in range(100):
            if self.server.started:
                return
            await asyncio.sleep(0.05)
        raise RuntimeError("Server did not start")

    async def stop(self):
        self.server.should_exit = True
        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=5)
            except (asyncio.TimeoutError, asyncio.CancelledError):
                self._task.cancel()


def _pick_port():
    return random.randint(19000, 19999)


@dataclass
class MockService:
    url: str
    ws_url: str
    state: _ServiceState


@pytest.fixture
async def service():
    port = _pick_port()
    app = create_notification_app()
    srv = _UvicornServer(app, "127.0.0.1", port)
    await srv.start()
    yield MockService(
        url=f"http://127.0.0.1:{port}",
        ws_url=f"ws://127.0.0.1:{port}/ws/websocket",
        state=app.state.service,
    )
    await srv.stop()


@pytest.fixture
def config(service):
    return ClientConfig.model_validate({
        "backend": {
            "url": f"{service.url}/notifications",
            "ws_url": service.ws_url,
            "request_timeout_seconds": 5,
            "connect_timeout_seconds": 5,
        },
        "session": {"user_id": 1, "role": "PATIENT"},
        "logging": {"level": "debug", "format": "text"},
    })


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
async def client(config, view):
    c = NotificationClient(config, view.sinks())
    await c.start(connect=False)
    yield c
    await c.stop()
