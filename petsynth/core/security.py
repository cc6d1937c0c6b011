# petsynth/core/security.py
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from flask import Flask, jsonify, current_app
from flask_jwt_extended import (
    JWTManager,
    create_access_token,
    decode_token,
    get_jwt,
    get_jwt_identity,
    set_access_cookies,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError
from werkzeug.security import generate_password_hash, check_password_hash

UNAUTHORIZED_MESSAGE = "Authentication required"


@dataclass(frozen=True)
class TokenIdentity:
    subject_id: str
    username: str


# --- Passwords ---
def hash_password(plaintext: str) -> str:
    """Salted, cost-factored one-way hash (Werkzeug's default method)."""
    return generate_password_hash(plaintext)


def verify_password(plaintext: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, plaintext)


# --- Tokens ---
def issue_token(subject_id: str, username: str, ttl_seconds: Optional[int] = None) -> str:
    """
    Signs an access token carrying sub, username, iat and exp.
    Without ttl_seconds the lifetime comes from JWT_ACCESS_TOKEN_EXPIRES.
    """
    expires_delta = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
    return create_access_token(
        identity=subject_id,
        additional_claims={"username": username},
        expires_delta=expires_delta,
    )


def verify_token(token: Optional[str]) -> Optional[TokenIdentity]:
    """
    Checks signature and expiry of a token.
    Malformed, expired and mis-signed tokens all return None so callers can answer
    with one uniform authentication failure.
    """
    if not token or not isinstance(token, str):
        return None
    try:
        payload = decode_token(token)
    except (PyJWTError, JWTExtendedException):
        return None
    return _identity_from_claims(payload)


def current_identity() -> TokenIdentity:
    """Identity of the caller inside a @jwt_required() route."""
    return TokenIdentity(subject_id=get_jwt_identity(), username=get_jwt().get("username"))


def set_auth_cookie(response, token: str):
    """HTTP-only cookie so server-rendered pages can authenticate with the same token."""
    max_age = int(current_app.config['JWT_ACCESS_TOKEN_EXPIRES'].total_seconds())
    set_access_cookies(response, token, max_age=max_age)
    return response


def _identity_from_claims(payload: dict) -> Optional[TokenIdentity]:
    subject_id = payload.get("sub")
    username = payload.get("username")
    if not isinstance(subject_id, str) or not subject_id:
        return None
    if not isinstance(username, str) or not username:
        return None
    return TokenIdentity(subject_id=subject_id, username=username)


def _unauthorized_response():
    return jsonify({"error_code": "UNAUTHORIZED", "message": UNAUTHORIZED_MESSAGE}), 401


def init_jwt(app: Flask) -> JWTManager:
    """
    Registers the JWT extension. Every failure mode (missing header, bad signature,
    expiry, missing claims) answers with the same 401 body.
    """
    jwt_manager = JWTManager(app)

    @jwt_manager.token_verification_loader
    def _has_required_claims(jwt_header, jwt_payload):
        return _identity_from_claims(jwt_payload) is not None

    @jwt_manager.unauthorized_loader
    def _missing_token(reason):
        logging.debug(f"Rejected request without usable token: {reason}")
        return _unauthorized_response()

    @jwt_manager.invalid_token_loader
    def _invalid_token(reason):
        logging.debug(f"Rejected request with invalid token: {reason}")
        return _unauthorized_response()

    @jwt_manager.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _unauthorized_response()

    @jwt_manager.token_verification_failed_loader
    def _claims_failed(jwt_header, jwt_payload):
        return _unauthorized_response()

    @jwt_manager.revoked_token_loader
    def _revoked_token(jwt_header, jwt_payload):
        return _unauthorized_response()

    return jwt_manager
