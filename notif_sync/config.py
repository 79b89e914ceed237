"""
Configuration loading and validation.

Loads client configuration from a YAML file. The acting user can be
overridden from the environment so one config file serves several users.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from .auth import Role, Session

USER_ID_ENV = "NOTIF_SYNC_USER_ID"
ROLE_ENV = "NOTIF_SYNC_ROLE"


class BackendConfig(BaseModel):
    url: str = "http://localhost:8080/notifications"
    ws_url: str = "ws://localhost:8080/ws/websocket"
    verify_tls: bool = True
    request_timeout_seconds: int = 30
    connect_timeout_seconds: int = 10


class SessionConfig(BaseModel):
    user_id: int = 1
    role: Role = Role.PATIENT

    def to_session(self) -> Session:
        """Session for the configured user, with environment overrides applied."""
        user_id = os.environ.get(USER_ID_ENV)
        role = os.environ.get(ROLE_ENV)
        try:
            return Session(
                user_id=int(user_id) if user_id else self.user_id,
                role=Role(role) if role else self.role,
            )
        except ValueError as exc:
            raise ValueError(f"Invalid {USER_ID_ENV}/{ROLE_ENV} override: {exc}") from exc


class DefaultsConfig(BaseModel):
    """Category-fixed values filled into create payloads."""
    recipient_type: Role = Role.PATIENT
    chat_type: str = "PRIVATE"
    chat_id: int = 99
    consent_request_id: int = 888


class LoggingConfig(BaseModel):
    level: str = "info"
    format: Literal["json", "text"] = "text"


class ClientConfig(BaseModel):
    backend: BackendConfig = Field(default_factory=BackendConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: str | Path) -> ClientConfig:
    """Load and validate client configuration from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return ClientConfig.model_validate(raw)
