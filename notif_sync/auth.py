"""
Session identity and bearer credential building.

The credential is a JWT-shaped string whose body carries the acting user's
role and id. It is not signed; the notification service resolves the user
by asking the user-management service, so the client only asserts who it is.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

TOKEN_HEADER = "header"
TOKEN_SIGNATURE = "signature"


class Role(str, Enum):
    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"
    ADMIN = "ADMIN"
    LABSTAFF = "LABSTAFF"
    RADIOLOGIST = "RADIOLOGIST"
    SUPERADMIN = "SUPERADMIN"


@dataclass(frozen=True)
class Session:
    """The user the client currently acts as."""
    user_id: int
    role: Role = Role.PATIENT

    @property
    def topic(self) -> str:
        return f"/topic/user/{self.user_id}"


TokenBuilder = Callable[[Session], str]


def build_token(session: Session) -> str:
    """Build the ``Authorization`` header value for a session."""
    body = json.dumps({"role": session.role.value, "id": session.user_id})
    encoded = base64.urlsafe_b64encode(body.encode()).decode()
    return f"Bearer {TOKEN_HEADER}.{encoded}.{TOKEN_SIGNATURE}"


def decode_token_body(token: str) -> dict[str, Any] | None:
    """Return the body segment of a credential, or None if it is malformed."""
    token = token.removeprefix("Bearer ").strip()
    chunks = token.split(".")
    if len(chunks) < 3:
        return None
    try:
        payload = base64.urlsafe_b64decode(chunks[1].encode())
        body = json.loads(payload)
    except (ValueError, json.JSONDecodeError):
        return None
    return body if isinstance(body, dict) else None
