"""
Error-triggering scenarios for checking the service's failure handling.

Each scenario issues a request the service is expected to reject and
returns the resulting ``PipelineError`` (``None`` if it was accepted).
"""

from __future__ import annotations

from typing import Awaitable, Callable

from .categories import Category
from .client import NotificationClient
from .pipeline import PipelineError

INVALID_RECIPIENT_ID = 9999


async def trigger_invalid_recipient(client: NotificationClient) -> PipelineError | None:
    try:
        await client.store(Category.CHAT).create(
            "This should fail", INVALID_RECIPIENT_ID, chat_type="PRIVATE", chat_id=1
        )
    except PipelineError as exc:
        return exc
    return None


async def trigger_invalid_chat(client: NotificationClient) -> PipelineError | None:
    try:
        await client.store(Category.CHAT).create(
            "Fail Chat", client.session.user_id, chat_type="INVALID_TYPE", chat_id=-1
        )
    except PipelineError as exc:
        return exc
    return None


async def trigger_invalid_consent(client: NotificationClient) -> PipelineError | None:
    try:
        await client.store(Category.CONSENT_REQUEST).create(
            "Fail Consent", client.session.user_id, consent_request_id=-500
        )
    except PipelineError as exc:
        return exc
    return None


async def trigger_unauthorized(client: NotificationClient) -> PipelineError | None:
    """List chat notifications without an Authorization header."""
    path = client.store(Category.CHAT).spec.list_path
    try:
        await client.pipeline.request("GET", path, authenticate=False)
    except PipelineError as exc:
        return exc
    return None


SCENARIOS: dict[str, Callable[[NotificationClient], Awaitable[PipelineError | None]]] = {
    "invalid-recipient": trigger_invalid_recipient,
    "invalid-chat": trigger_invalid_chat,
    "invalid-consent": trigger_invalid_consent,
    "unauthorized": trigger_unauthorized,
}
