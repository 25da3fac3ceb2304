"""Password hashing for the bundled identity provider."""

import hashlib
import hmac
import secrets
from base64 import b64decode, b64encode

_ROUNDS = 260_000
_SCHEME = 'pbkdf2_sha256'


def _hash_salt_and_password(salt: bytes, password: str, rounds: int) -> bytes:
    return hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, rounds)


def hash_password(password: str) -> str:
    """Generate a salted hash of a password."""
    salt = secrets.token_bytes(16)
    hashed = _hash_salt_and_password(salt, password, _ROUNDS)
    return f"{_SCHEME}${_ROUNDS}${b64encode(salt).decode('ascii')}${b64encode(hashed).decode('ascii')}"


def check_password(password: str, encrypted: str) -> bool:
    """Check a password against a hash from :func:`hash_password`."""
    try:
        scheme, rounds, salt, hashed = encrypted.split('$', 3)
        if scheme != _SCHEME:
            return False
        expected = b64decode(hashed)
        calculated = _hash_salt_and_password(b64decode(salt), password, int(rounds))
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(expected, calculated)
