import jwt

from .domain import Auth


def decode(token: str, secret: str) -> Auth:
    """Decode an auth token to access session information."""
    data = dict(jwt.decode(token, secret, algorithms=["HS256"]))
    return Auth(**data)


def encode(auth: Auth, secret: str) -> str:
    """Encode a auth token"""
    return jwt.encode(auth.model_dump(), secret, algorithm="HS256")
