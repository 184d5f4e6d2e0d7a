"""API-key and bearer-token authentication for shop members."""

from __future__ import annotations

import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import HTTPException, status

from simpligest.config import get_settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def load_api_keys(settings=None) -> set[str]:
    settings = settings or get_settings()
    raw_values = [settings.OWNER_API_KEY or ""]
    raw_values.extend((settings.API_KEYS or "").split(","))
    return {value.strip() for value in raw_values if value and value.strip()}


def is_valid_api_key(api_key: Optional[str], keys) -> bool:
    if not api_key:
        return False
    candidate = api_key.strip().encode("utf-8")
    return any(hmac.compare_digest(candidate, key.encode("utf-8")) for key in keys)


def auth_configured(settings=None) -> bool:
    settings = settings or get_settings()
    return bool(load_api_keys(settings) or settings.JWT_SECRET or settings.JWT_REQUIRED)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def issue_member_token(user_id: str, email: Optional[str] = None, *, now=None, settings=None) -> str:
    """Sign a short-lived token for a member; ``sub`` carries the user id."""
    settings = settings or get_settings()
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET is not configured")
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    if email:
        claims["email"] = email
    if settings.JWT_AUDIENCE:
        claims["aud"] = settings.JWT_AUDIENCE
    if settings.JWT_ISSUER:
        claims["iss"] = settings.JWT_ISSUER
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_member_token(token: str, settings=None) -> dict:
    settings = settings or get_settings()
    if not settings.JWT_SECRET:
        raise _unauthorized("Bearer tokens are not accepted")
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"require": ["sub"], "verify_aud": bool(settings.JWT_AUDIENCE)},
        )
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise _unauthorized("Invalid token") from exc


def authenticate_request(
    api_key: Optional[str],
    authorization: Optional[str],
    *,
    require_auth: bool = False,
    settings=None,
) -> Optional[dict]:
    """Resolve the caller.

    Returns ``{"auth_type": "api_key"}`` for a shop key, a member context with
    ``user_id`` for a valid bearer token, or ``None`` when the deployment has no
    credentials configured. Anything else is a 401.
    """
    settings = settings or get_settings()
    keys = load_api_keys(settings)

    if not settings.JWT_REQUIRED and is_valid_api_key(api_key, keys):
        return {"auth_type": "api_key", "user_id": None}

    token = extract_bearer_token(authorization)
    if token:
        claims = decode_member_token(token, settings)
        return {
            "auth_type": "jwt",
            "user_id": claims["sub"],
            "email": claims.get("email"),
            "claims": claims,
        }

    if not auth_configured(settings):
        return None
    if require_auth or settings.JWT_REQUIRED or keys:
        raise _unauthorized("Not authenticated")
    return None


__all__ = [
    "auth_configured",
    "authenticate_request",
    "decode_member_token",
    "extract_bearer_token",
    "issue_member_token",
    "load_api_keys",
]
