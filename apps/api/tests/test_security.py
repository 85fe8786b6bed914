"""Tests for session tokens and OAuth state helpers."""

import jwt
import pytest

from soloflow.core.config import settings
from soloflow.core.security import (
    create_oauth_state_payload,
    create_session_token,
    decode_session_token,
    parse_oauth_state_payload,
    verify_oauth_state,
)
from soloflow.schemas.auth import Identity


@pytest.fixture
def identity() -> Identity:
    return Identity(
        subject="google-sub-1",
        email="person@example.com",
        name="Pat Person",
        first_name="Pat",
        last_name="Person",
        picture="https://example.com/pat.png",
    )


def test_session_token_carries_identity(identity: Identity):
    decoded = decode_session_token(create_session_token(identity))
    assert decoded == identity


def test_previous_secret_still_accepted(identity: Identity, monkeypatch):
    token = create_session_token(identity)
    monkeypatch.setattr(settings, "SESSION_SECRET", "rotated-secret")
    monkeypatch.setattr(settings, "SESSION_SECRET_PREVIOUS", "test-session-secret")

    assert decode_session_token(token).subject == identity.subject


def test_unknown_secret_rejected(identity: Identity):
    token = jwt.encode({"sub": "x", "provider": "google", "email": "x@example.com"}, "other", algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(token)


def test_oauth_state_bound_to_user_agent():
    payload = parse_oauth_state_payload(create_oauth_state_payload("state-1", "nonce-1", "Browser/1.0"))

    assert verify_oauth_state(payload, "state-1", "Browser/1.0") == (True, "")
    assert verify_oauth_state(payload, "state-2", "Browser/1.0")[0] is False
    assert verify_oauth_state(payload, "state-1", "Other/2.0")[0] is False


@pytest.mark.parametrize("cookie_value", ["123", "[1, 2]", '"state"', "not-json"])
def test_oauth_state_payload_must_be_object(cookie_value: str):
    with pytest.raises(ValueError):
        parse_oauth_state_payload(cookie_value)
