"""
Bearer tokens for the API (PyJWT, HS256).

Claims: ``sub`` (user id as a string), ``role``, ``email``, ``type``
("access"), ``iat``, ``exp`` and a random ``jti``. Lifetime is
JWT_ACCESS_EXPIRES seconds. The role claim is informational only; the
auth middleware reloads the user on every request.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

ALGORITHM = "HS256"
TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ["sub", "exp", "iat"]


def _signing_key():
    cfg = current_app.config
    return cfg.get("JWT_SECRET_KEY") or cfg["SECRET_KEY"]


def access_token_lifetime() -> int:
    return int(current_app.config["JWT_ACCESS_EXPIRES"])


def generate_access_token(user) -> str:
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "role": user.role,
        "email": user.email,
        "type": TOKEN_TYPE,
        "iat": issued,
        "exp": issued + timedelta(seconds=access_token_lifetime()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, _signing_key(), algorithm=ALGORITHM)


def token_response(user) -> dict:
    """Body returned by a successful login."""
    return {
        "accessToken": generate_access_token(user),
        "tokenType": "Bearer",
        "expiresIn": access_token_lifetime(),
        "user": user.to_dict(include_projects=True),
    }


def decode_token(token: str) -> dict:
    """Verify signature, expiry and token type; PyJWT errors propagate."""
    claims = jwt.decode(token, _signing_key(), algorithms=[ALGORITHM], options={"require": REQUIRED_CLAIMS})
    if claims.get("type") != TOKEN_TYPE:
        raise jwt.InvalidTokenError(f"Not an {TOKEN_TYPE} token")
    return claims
