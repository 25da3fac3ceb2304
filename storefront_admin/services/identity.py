"""The identity provider collaborator.

The roster only needs :meth:`IdentityProvider.list_users`. The HTTP layer
also uses sign in, sign out, current user lookup and password reset.
Reset links go out through a :class:`.MailSession` and are redeemed with
:meth:`IdentityProvider.reset_password`.

:class:`SQLIdentityProvider` keeps users and sessions in the storefront
database through a :class:`.RowStore`. Sessions are HS256 JWTs whose
``session_id`` must still have a row in ``auth_sessions``; signing out
deletes that row.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional
import logging
import secrets
import smtplib
import uuid
from urllib.parse import urlencode

import jwt as pyjwt

from .. import jwt
from ..domain import Auth, IdentityUser, SignedIn
from ..exceptions import (AuthenticationFailed, DuplicateRow,
                          IdentityProviderError, InvalidResetToken,
                          RowStoreError)
from ..mail import MailSession, password_reset_message
from ..passwords import check_password, hash_password
from .rowstore import RowStore


log = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class IdentityProvider:
    """Interface of the identity provider collaborator."""

    def get_current_user(self, token: Optional[str]) -> Optional[IdentityUser]:
        """User of a live session, or None."""
        raise NotImplementedError

    def list_users(self) -> List[IdentityUser]:
        """Every registered user with their email."""
        raise NotImplementedError

    def sign_in(self, email: str, password: str) -> SignedIn:
        raise NotImplementedError

    def sign_out(self, token: Optional[str]) -> None:
        raise NotImplementedError

    def request_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        raise NotImplementedError

    def reset_password(self, token: str, password: str) -> None:
        raise NotImplementedError


class SQLIdentityProvider(IdentityProvider):
    """Identity provider backed by the ``auth_*`` tables."""

    def __init__(self, store: RowStore, secret: str, session_duration: int = 120,
                 mailer: Optional[MailSession] = None, reset_ttl: int = 60):
        self.store = store
        self.secret = secret
        self.session_duration = session_duration
        """Minutes a session stays valid"""

        self.mailer = mailer
        self.reset_ttl = reset_ttl
        """Minutes a password reset link stays valid"""

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _user(self, row: dict) -> IdentityUser:
        return IdentityUser(user_id=row["id"], email=row["email"])

    def create_user(self, email: str, password: str) -> IdentityUser:
        """Register a user. Used for seeding and by ``manage.py``."""
        email = normalize_email(email)
        if not email:
            raise ValueError("Email must not be empty")
        if not password:
            raise ValueError("Password must not be empty")

        user_id = str(uuid.uuid4())
        try:
            self.store.insert("auth_users", {
                "id": user_id,
                "email": email,
                "password_hash": hash_password(password),
                "created_at": self._now(),
            })
        except DuplicateRow as exc:
            raise ValueError("A user with that email already exists") from exc
        except RowStoreError as exc:
            raise IdentityProviderError("Could not create user") from exc
        log.info("created user %s for %s", user_id, email[:10])
        return IdentityUser(user_id=user_id, email=email)

    def list_users(self) -> List[IdentityUser]:
        try:
            rows = self.store.select("auth_users", ["id", "email"])
        except RowStoreError as exc:
            raise IdentityProviderError("Could not list users") from exc
        return [self._user(row) for row in rows]

    def get_user(self, user_id: str) -> Optional[IdentityUser]:
        try:
            rows = self.store.select("auth_users", ["id", "email"], id=user_id)
        except RowStoreError as exc:
            raise IdentityProviderError("Could not fetch user") from exc
        return self._user(rows[0]) if rows else None

    def sign_in(self, email: str, password: str) -> SignedIn:
        email = normalize_email(email)
        try:
            rows = self.store.select("auth_users", ["id", "email", "password_hash"],
                                     email=email)
        except RowStoreError as exc:
            raise IdentityProviderError("Could not look up user") from exc

        if not rows or not check_password(password or "", rows[0]["password_hash"]):
            log.warning("sign in failed for %s", email[:10])
            raise AuthenticationFailed("Invalid login credentials")

        user = self._user(rows[0])
        expires = (self._now() + timedelta(minutes=self.session_duration)).isoformat()
        auth = Auth(user_id=user.user_id,
                    session_id=secrets.token_urlsafe(32),
                    nonce=secrets.token_hex(8),
                    expires=expires)
        try:
            self.store.insert("auth_sessions", {"session_id": auth.session_id,
                                                "user_id": user.user_id,
                                                "expires": expires})
        except RowStoreError as exc:
            raise IdentityProviderError("Could not create session") from exc

        log.info("sign in for user %s", user.user_id)
        return SignedIn(user=user, token=jwt.encode(auth, self.secret), expires=expires)

    def _decode(self, token: Optional[str]) -> Optional[Auth]:
        if not token:
            return None
        try:
            return jwt.decode(token, self.secret)
        except (pyjwt.InvalidTokenError, ValueError) as exc:
            log.debug("could not decode session token: %s", exc)
            return None

    def get_current_user(self, token: Optional[str]) -> Optional[IdentityUser]:
        auth = self._decode(token)
        if auth is None:
            return None
        try:
            if datetime.fromisoformat(auth.expires) <= self._now():
                log.debug("session %s expired", auth.session_id[:8])
                return None
        except (ValueError, TypeError):
            return None

        try:
            live = self.store.count("auth_sessions", session_id=auth.session_id,
                                    user_id=auth.user_id)
        except RowStoreError as exc:
            raise IdentityProviderError("Could not look up session") from exc
        if not live:
            log.debug("session %s was signed out", auth.session_id[:8])
            return None
        return self.get_user(auth.user_id)

    def sign_out(self, token: Optional[str]) -> None:
        """Ends the session. Unknown or invalid tokens are ignored."""
        auth = self._decode(token)
        if auth is None:
            return
        try:
            self.store.delete("auth_sessions", session_id=auth.session_id)
        except RowStoreError as exc:
            raise IdentityProviderError("Could not end session") from exc
        log.info("sign out for user %s", auth.user_id)

    def request_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Mail a single use password reset link to ``email``.

        The link is ``redirect_to`` with a ``token`` query parameter for
        :meth:`reset_password`. Unknown emails are accepted silently so the
        endpoint cannot be used to discover accounts. Without a mailer the
        request is only recorded.
        """
        email = normalize_email(email)
        if not email:
            raise ValueError("Email must not be empty")
        token = secrets.token_urlsafe(32)
        try:
            if not self.store.count("auth_users", email=email):
                log.info("password reset for unknown email %s", email[:10])
                return
            self.store.insert("password_reset_requests", {
                "token": token,
                "email": email,
                "redirect_to": redirect_to,
                "requested_at": self._now(),
            })
        except RowStoreError as exc:
            raise IdentityProviderError("Could not request password reset") from exc

        if self.mailer is None:
            log.warning("no mailer, password reset link for %s was not sent", email[:10])
            return
        try:
            self.mailer.send_message(
                password_reset_message(email, reset_link(redirect_to, token)))
        except (smtplib.SMTPException, OSError) as exc:
            log.error("password reset email to %s failed: %s", email[:10], exc)
            raise IdentityProviderError("Could not send the password reset email") from exc
        log.info("password reset requested for %s", email[:10])

    def reset_password(self, token: str, password: str) -> None:
        """Set a new password with a token from :meth:`request_password_reset`.

        Redeeming a token invalidates every outstanding reset link of the
        user and ends all of their sessions.
        """
        if not password:
            raise ValueError("Password must not be empty")
        if not token:
            raise InvalidResetToken("The password reset link is not valid")
        try:
            rows = self.store.select("password_reset_requests",
                                     ["email", "requested_at"], token=token)
        except RowStoreError as exc:
            raise IdentityProviderError("Could not look up password reset") from exc
        if not rows:
            log.debug("unknown password reset token")
            raise InvalidResetToken("The password reset link is not valid")

        email = rows[0]["email"]
        requested_at = rows[0]["requested_at"]
        if requested_at.tzinfo is None:
            requested_at = requested_at.replace(tzinfo=timezone.utc)
        try:
            if requested_at + timedelta(minutes=self.reset_ttl) <= self._now():
                self.store.delete("password_reset_requests", token=token)
                log.info("expired password reset for %s", email[:10])
                raise InvalidResetToken("The password reset link has expired")

            users = self.store.select("auth_users", ["id"], email=email)
            if not users:
                self.store.delete("password_reset_requests", email=email)
                raise InvalidResetToken("The password reset link is not valid")
            user_id = users[0]["id"]
            self.store.update("auth_users", {"password_hash": hash_password(password)},
                              id=user_id)
            self.store.delete("password_reset_requests", email=email)
            self.store.delete("auth_sessions", user_id=user_id)
        except RowStoreError as exc:
            raise IdentityProviderError("Could not reset password") from exc
        log.info("password reset for user %s", user_id)


def reset_link(redirect_to: Optional[str], token: str) -> str:
    """``redirect_to`` with the reset token as a query parameter."""
    if not redirect_to:
        return token
    separator = "&" if "?" in redirect_to else "?"
    return f"{redirect_to}{separator}{urlencode({'token': token})}"
