"""
Password hashing (bcrypt) and invitation tokens.
"""

import secrets

import bcrypt

BCRYPT_ROUNDS = 12
INVITATION_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    digest = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return digest.decode("utf-8")


def verify_password(password: str, stored_hash: str | None) -> bool:
    """False for a missing password, a missing hash or a corrupt hash."""
    if not password or not stored_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_invitation_token() -> str:
    return secrets.token_urlsafe(INVITATION_TOKEN_BYTES)
