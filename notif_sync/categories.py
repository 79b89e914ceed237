"""
Notification categories, item schemas and per-category endpoint records.

The three categories differ only in their endpoints and creation payload,
so each is described by a ``CategorySpec`` consumed by one generic store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .config import DefaultsConfig


class Category(str, Enum):
    CHAT = "CHAT"
    CONSENT_REQUEST = "CONSENT_REQUEST"
    ONE_WAY = "ONE_WAY"


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

class NotificationItem(BaseModel):
    """A delivered notification. Identity is ``id`` within its category."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: int
    message: str
    recipient_type: Optional[str] = None
    recipient_id: Optional[int] = None


class ChatNotification(NotificationItem):
    chat_type: Optional[str] = None
    chat_id: Optional[int] = None


class ConsentRequestNotification(NotificationItem):
    consent_request_id: Optional[int] = None


class OneWayNotification(NotificationItem):
    pass


# ---------------------------------------------------------------------------
# Endpoint records
# ---------------------------------------------------------------------------

PayloadBuilder = Callable[[str, int, dict[str, Any]], dict[str, Any]]


@dataclass(frozen=True)
class CategorySpec:
    category: Category
    list_id: str
    list_path: str
    create_path: str
    delete_path_template: str
    delete_all_path: str
    item_model: type[NotificationItem]
    build_payload: PayloadBuilder

    def delete_path(self, item_id: int) -> str:
        return self.delete_path_template.format(id=item_id)


def build_specs(defaults: DefaultsConfig | None = None) -> dict[Category, CategorySpec]:
    """Build the endpoint records for all three categories."""
    defaults = defaults or DefaultsConfig()

    def base(message: str, recipient_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        recipient_type = fields.get("recipient_type", defaults.recipient_type)
        return {
            "message": message,
            "recipientType": getattr(recipient_type, "value", recipient_type),
            "recipientId": recipient_id,
        }

    def chat(message: str, recipient_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        return {
            **base(message, recipient_id, fields),
            "chatType": fields.get("chat_type", defaults.chat_type),
            "chatId": fields.get("chat_id", defaults.chat_id),
        }

    def consent(message: str, recipient_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        return {
            **base(message, recipient_id, fields),
            "consentRequestId": fields.get("consent_request_id", defaults.consent_request_id),
        }

    return {
        Category.CHAT: CategorySpec(
            category=Category.CHAT,
            list_id="chatList",
            list_path="/getAllChatNotifications",
            create_path="/sendChatNotification",
            delete_path_template="/deleteChatNotification/{id}",
            delete_all_path="/deleteAllChatNotifications",
            item_model=ChatNotification,
            build_payload=chat,
        ),
        Category.CONSENT_REQUEST: CategorySpec(
            category=Category.CONSENT_REQUEST,
            list_id="consentList",
            list_path="/getAllConsentRequestNotifications",
            create_path="/sendConsentRequestNotification",
            delete_path_template="/deleteConsentRequestNotification/{id}",
            delete_all_path="/deleteAllConsentRequestNotifications",
            item_model=ConsentRequestNotification,
            build_payload=consent,
        ),
        Category.ONE_WAY: CategorySpec(
            category=Category.ONE_WAY,
            list_id="onewayList",
            list_path="/getAllOneWayNotifications",
            create_path="/sendOneWayNotification",
            delete_path_template="/deleteOneWayNotification/{id}",
            delete_all_path="/deleteAllOneWayNotifications",
            item_model=OneWayNotification,
            build_payload=base,
        ),
    }
