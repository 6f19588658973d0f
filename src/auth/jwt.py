"""Bearer token verification for tokens issued by the auth provider."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from src.core.config import get_settings
from src.core.errors import Unauthorized


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    email: str


def create_access_token(context: AuthContext) -> tuple[str, int]:
    """Issue a provider-compatible token; used by local tooling and tests."""

    settings = get_settings()
    expires_in = settings.access_token_exp_minutes * 60
    now = datetime.now(timezone.utc)
    payload = {
        "sub": context.user_id,
        "email": context.email,
        "aud": settings.auth_jwt_audience,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    token = jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)
    return token, expires_in


def decode_access_token(token: str) -> AuthContext:
    settings = get_settings()
    if not settings.auth_jwt_secret:
        raise Unauthorized("Authentication is not configured")
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
        )
    except jwt.PyJWTError as exc:
        raise Unauthorized("Invalid or expired token") from exc

    subject = str(payload.get("sub") or "").strip()
    if not subject:
        raise Unauthorized("Invalid or expired token")
    return AuthContext(user_id=subject, email=str(payload.get("email") or ""))
