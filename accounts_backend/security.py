"""
Password hashing helpers built on bcrypt.
"""

from __future__ import annotations

import bcrypt

from accounts_backend.errors import InvalidCredentialFormat

DEFAULT_ROUNDS = 8

# bcrypt only consumes the first 72 bytes of a password; longer ones are refused.
MAX_PASSWORD_BYTES = 72


def password_too_long(plaintext: str) -> bool:
    return len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(plaintext: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt digest of ``plaintext`` using ``rounds`` as the cost factor."""
    if password_too_long(plaintext):
        raise ValueError(f"password is longer than {MAX_PASSWORD_BYTES} bytes")
    digest = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return digest.decode("ascii")


def verify_password(plaintext: str, digest: str) -> bool:
    """
    Check ``plaintext`` against a stored bcrypt digest.

    Passwords longer than bcrypt's input limit never match. Raises
    InvalidCredentialFormat when ``digest`` is not a bcrypt hash.
    """
    try:
        encoded_digest = digest.encode("ascii")
    except UnicodeEncodeError as exc:
        raise InvalidCredentialFormat("stored password digest is malformed") from exc
    if password_too_long(plaintext):
        return False
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), encoded_digest)
    except ValueError as exc:
        raise InvalidCredentialFormat("stored password digest is malformed") from exc
