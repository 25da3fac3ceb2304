"""FastAPI dependencies that authenticate requests and gate admin routes.

The app built by :func:`storefront_admin.factory.create_app` keeps its
collaborators in ``app.extra``: ``identity``, ``roster``, ``store`` and the
``AUTH_SESSION_COOKIE_NAME``.

Use :func:`current_user` for routes any signed in user may call and
:func:`admin_user` for admin only routes. The latter asks
:meth:`AdminRoster.is_admin`, so a failed lookup denies access.
"""
import logging
from typing import List, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from ..domain import IdentityUser, RawAuth
from ..exceptions import IdentityProviderError
from ..roster import AdminRoster
from ..services.identity import IdentityProvider
from ..services.rowstore import RowStore

log = logging.getLogger(__name__)


def get_identity(request: Request) -> IdentityProvider:
    return request.app.extra['identity']


def get_roster(request: Request) -> AdminRoster:
    return request.app.extra['roster']


def get_store(request: Request) -> RowStore:
    return request.app.extra['store']


async def session_cookie(request: Request) -> Optional[RawAuth]:
    """Gets the session JWT from the session cookie."""
    key = request.app.extra['AUTH_SESSION_COOKIE_NAME']
    token = request.cookies.get(key)
    if not token:
        log.debug("There is no cookie '%s'", key)
        return None
    return RawAuth(rawjwt=token, rawheader=None, via="cookie", key=key)


async def jwt_header(Authorization: Optional[str] = Header(None)) -> Optional[RawAuth]:
    """Gets JWT from Authorization Bearer header."""
    if not Authorization:
        return None

    parts = Authorization.split()
    if not parts or parts[0].lower() != "bearer":
        log.debug("Authorization header Failed, lacked bearer")
        return None
    if len(parts) != 2:
        log.debug("Authorization header Failed, not 2 parts")
        return None
    return RawAuth(rawjwt=parts[1], rawheader=Authorization,
                   via="header", key="Authorization")


async def rawauths(
    cookie: Optional[RawAuth] = Depends(session_cookie),
    header: Optional[RawAuth] = Depends(jwt_header),
) -> List[RawAuth]:
    """Gets the JWTs from cookie and header, cookie first"""
    return [raw for raw in (cookie, header) if raw is not None]


def current_user_or_none(
    raws: List[RawAuth] = Depends(rawauths),
    identity: IdentityProvider = Depends(get_identity),
) -> Optional[IdentityUser]:
    """User of the first token that resolves to a live session.

    A stale session cookie does not hide a valid bearer token.
    """
    for raw in raws:
        try:
            user = identity.get_current_user(raw.rawjwt)
        except IdentityProviderError as ex:
            log.warning("Could not resolve session from %s: %s", raw.via, ex)
            continue
        if user is not None:
            return user
        log.debug("No live session from %s", raw.via)
    return None


def current_user(
    user: Optional[IdentityUser] = Depends(current_user_or_none),
) -> IdentityUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Unauthorized")
    return user


def admin_user(
    user: IdentityUser = Depends(current_user),
    roster: AdminRoster = Depends(get_roster),
) -> IdentityUser:
    """The signed in user, who must be on the admin roster."""
    if not roster.is_admin(user.user_id):
        log.debug("Failed: user %s is not an admin", user.user_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Admin privilege required")
    return user
