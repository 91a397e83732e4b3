"""
Claim Assist — Identity Verification

Sign-up, sign-in, password reset and email verification belong to the
external auth provider. This module only verifies the access tokens that
provider issues and resolves them to a user identifier.

Token model:
  - HS256 JWT signed with the provider's shared secret
  - `sub` is the user id, `aud` must match settings.jwt_audience
  - `role` distinguishes signed-in users ("authenticated") from the
    provider's anonymous/service keys, which are rejected here
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import jwt
from fastapi import Request

from claim_assist.config import settings
from claim_assist.errors import AccessDenied, AuthError

logger = logging.getLogger(__name__)

AUTHENTICATED_ROLE = "authenticated"


@dataclass(frozen=True)
class Identity:
    """The verified caller of a request."""
    user_id: str
    email: str = ""
    role: str = AUTHENTICATED_ROLE


# ── JWT management ───────────────────────────────────────────────────

def create_access_token(
    user_id: str,
    email: str = "",
    role: str = AUTHENTICATED_ROLE,
    ttl_seconds: int | None = None,
) -> str:
    """
    Mint an access token in the provider's format.
    Used for local development and tests; production tokens come from
    the auth provider.
    """
    now = int(time.time())
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + (ttl_seconds if ttl_seconds is not None else settings.jwt_access_token_ttl),
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> Identity:
    """
    Decode and validate an access token.
    Raises AuthError when the token is unusable, AccessDenied when it is
    valid but not a signed-in user's token.
    """
    options = {"require": ["exp", "sub"]}
    kwargs: dict = {}
    if settings.jwt_issuer:
        kwargs["issuer"] = settings.jwt_issuer
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
            **kwargs,
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Access token expired")
        raise AuthError("Unauthorized: Token expired")
    except jwt.InvalidTokenError as exc:
        logger.warning("Invalid access token: %s", exc)
        raise AuthError("Unauthorized: Invalid token")

    user_id = str(payload.get("sub") or "")
    if not user_id:
        raise AuthError("Unauthorized: Invalid token")

    role = payload.get("role", AUTHENTICATED_ROLE)
    if role != AUTHENTICATED_ROLE:
        logger.warning("Rejected token with role %s", role)
        raise AccessDenied("Access denied: a signed-in user is required")

    return Identity(user_id=user_id, email=payload.get("email", ""), role=role)


# ── FastAPI dependency ───────────────────────────────────────────────

async def get_current_user(request: Request) -> Identity:
    """
    FastAPI dependency: extracts the Bearer token from the Authorization
    header and returns the verified Identity.

    Use as: identity: Identity = Depends(get_current_user)
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        raise AuthError("Missing Authorization header")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Missing or invalid Authorization header")

    identity = verify_access_token(token.strip())
    logger.debug("User authenticated: %s", identity.user_id)
    return identity
