"""Tests for session credentials."""

import base64
import json

from notif_sync.auth import Role, Session, build_token, decode_token_body


def test_token_has_three_segments_with_bearer_prefix():
    token = build_token(Session(user_id=7, role=Role.DOCTOR))
    assert token.startswith("Bearer ")
    header, body, signature = token.removeprefix("Bearer ").split(".")
    assert header == "header"
    assert signature == "signature"
    assert json.loads(base64.urlsafe_b64decode(body)) == {"role": "DOCTOR", "id": 7}


def test_decode_token_body():
    token = build_token(Session(user_id=3))
    assert decode_token_body(token) == {"role": "PATIENT", "id": 3}


def test_decode_rejects_malformed_tokens():
    assert decode_token_body("Bearer nodots") is None
    assert decode_token_body("Bearer a.!!!.c") is None
    assert decode_token_body("") is None


def test_token_depends_only_on_session():
    assert build_token(Session(1, Role.PATIENT)) == build_token(Session(1, Role.PATIENT))
    assert build_token(Session(1, Role.PATIENT)) != build_token(Session(2, Role.PATIENT))
    assert build_token(Session(1, Role.PATIENT)) != build_token(Session(1, Role.DOCTOR))


def test_session_topic():
    assert Session(user_id=42).topic == "/topic/user/42"
