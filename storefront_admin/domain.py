"""Data models shared by the roster, the identity provider and the API."""
from typing import Literal, Optional

from pydantic import BaseModel


UNKNOWN_EMAIL = "unknown user"
"""Shown for roster ids the identity provider no longer knows"""


class IdentityUser(BaseModel):
    """A registered user as known to the identity provider"""

    user_id: str
    """Opaque user id, a UUID string for the bundled provider"""

    email: Optional[str] = None
    """Email address; some providers allow users without one"""


class Auth(BaseModel):
    """Claims carried in a session JWT"""
    user_id: str
    session_id: str
    nonce: str
    expires: str


class RawAuth(BaseModel):
    """An encoded JWT from a HTTP request"""
    rawjwt: str
    rawheader: Optional[str] = None
    via: Literal["cookie", "header"]
    key: str


class SignedIn(BaseModel):
    """Result of a successful sign in"""

    user: IdentityUser
    token: str
    """Encoded session JWT to hand back as cookie or bearer token"""

    expires: str
    """ISO-8601 expiry of the session"""


class AdminRosterEntry(BaseModel):
    """A row of the ``admin_users`` table"""
    id: str


class AdminUser(BaseModel):
    """Roster entry joined with the identity provider's email"""
    id: str
    email: str


class StoreOverview(BaseModel):
    """Headline numbers for the admin dashboard"""
    total_products: int = 0
    total_orders: int = 0
    total_users: int = 0
    total_sales: float = 0.0
