# petsynth/core/test_security.py
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from flask_jwt_extended import create_access_token, decode_token

from petsynth.core.security import hash_password, issue_token, verify_password, verify_token


def test_hash_is_salted_and_verifiable():
    first = hash_password("secret1")
    second = hash_password("secret1")

    assert first != "secret1"
    assert first != second
    assert verify_password("secret1", first)
    assert verify_password("secret1", second)
    assert not verify_password("secret2", first)


@pytest.mark.parametrize("stored", [None, ""])
def test_missing_hash_never_verifies(stored):
    assert verify_password("secret1", stored) is False


def test_token_round_trip_recovers_identity(app):
    with app.app_context():
        token = issue_token("user-123", "alice")
        identity = verify_token(token)

    assert identity.subject_id == "user-123"
    assert identity.username == "alice"


def test_token_lifetime_comes_from_jwt_config(app):
    assert app.config['JWT_ACCESS_TOKEN_EXPIRES'] == timedelta(hours=24)
    with app.app_context():
        token = issue_token("user-123", "alice")
        claims = decode_token(token)
    assert claims["exp"] - claims["iat"] == 86400


def test_expired_token_is_rejected(app):
    with app.app_context():
        token = issue_token("user-123", "alice", ttl_seconds=-30)
        assert verify_token(token) is None


def test_token_signed_with_other_secret_is_rejected(app):
    now = datetime.now(timezone.utc)
    forged = jwt.encode(
        {"sub": "user-123", "username": "alice", "iat": now, "exp": now + timedelta(hours=1), "type": "access"},
        "some-other-secret-of-enough-length",
        algorithm="HS256",
    )
    with app.app_context():
        assert verify_token(forged) is None


def test_token_without_username_is_rejected(app):
    with app.app_context():
        token = create_access_token(identity="user-123")
        assert verify_token(token) is None


@pytest.mark.parametrize("token", [None, "", "not-a-token", "a.b.c"])
def test_malformed_tokens_are_rejected(app, token):
    with app.app_context():
        assert verify_token(token) is None
