"""The admin roster: who may use the storefront dashboard.

Membership is a single ``admin_users`` table keyed by the identity
provider's user id. Admin status is binary, with no roles or expiry.

The roster is handed its collaborators explicitly:

.. code-block:: python

   roster = AdminRoster(SQLRowStore(SessionLocal), identity)
   if roster.is_admin(user.user_id):
       ...

:meth:`AdminRoster.is_admin` is the check behind every admin route and never
raises. The management methods raise :class:`.AddAdminError` subclasses with
messages fit to show to the person at the dashboard.
"""

from typing import Dict, List, Optional
import logging

from .domain import UNKNOWN_EMAIL, AdminRosterEntry, AdminUser
from .exceptions import AlreadyAdmin, DuplicateRow, StoreFailure, UserNotFound
from .services.identity import IdentityProvider, normalize_email
from .services.rowstore import RowStore


log = logging.getLogger(__name__)

ADMIN_TABLE = "admin_users"


class AdminRoster:
    """Authorization check and roster management over a row store."""

    def __init__(self, store: RowStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    def is_admin(self, user_id: Optional[str]) -> bool:
        """Whether ``user_id`` is on the roster.

        Fails closed: any lookup failure answers ``False``. An empty id is
        rejected without touching the store.
        """
        if not user_id:
            log.debug("is_admin() called without a user id")
            return False

        try:
            count = self.store.count(ADMIN_TABLE, id=user_id)
        except Exception as ex:
            log.error("is_admin() count lookup failed for %s: %s", user_id, ex)
        else:
            log.debug("is_admin() count for %s: %s", user_id, count)
            if count > 0:
                return True

        try:
            rows = self.store.select(ADMIN_TABLE, ["id"], id=user_id)
        except Exception as ex:
            log.error("is_admin() row lookup failed for %s: %s", user_id, ex)
            return False
        return len(rows) > 0

    def _lookup_user_id(self, email: str) -> str:
        try:
            users = self.identity.list_users()
        except Exception as exc:
            log.error("listing users failed: %s", exc)
            raise StoreFailure("Could not fetch the list of users") from exc

        for user in users:
            if normalize_email(user.email) == email:
                return user.user_id
        raise UserNotFound(f"No user with email {email} exists")

    def add_admin(self, email: str) -> None:
        """Grant admin privilege to the user registered with ``email``.

        Raises
        ------
        ValueError
            If ``email`` is blank. Nothing is looked up.
        UserNotFound
            If no registered user has ``email``.
        AlreadyAdmin
            If the user is already on the roster.
        StoreFailure
            If the identity provider or the row store fails.
        """
        email = normalize_email(email)
        if not email:
            raise ValueError("Email must not be empty")

        user_id = self._lookup_user_id(email)

        try:
            existing = self.store.select(ADMIN_TABLE, ["id"], id=user_id)
        except Exception as exc:
            log.error("admin check for %s failed: %s", user_id, exc)
            raise StoreFailure("Could not check admin status") from exc
        if existing:
            raise AlreadyAdmin(f"{email} is already an admin")

        try:
            self.store.insert(ADMIN_TABLE, {"id": user_id})
        except DuplicateRow as exc:
            # Lost a race with a concurrent add of the same user.
            raise AlreadyAdmin(f"{email} is already an admin") from exc
        except Exception as exc:
            log.error("adding admin %s failed: %s", user_id, exc)
            raise StoreFailure(f"Could not add {email} as an admin") from exc
        log.info("added admin %s (%s)", user_id, email[:10])

    def remove_admin(self, user_id: str) -> None:
        """Revoke admin privilege. Ids not on the roster are ignored."""
        try:
            removed = self.store.delete(ADMIN_TABLE, id=user_id)
        except Exception as exc:
            log.error("removing admin %s failed: %s", user_id, exc)
            raise StoreFailure("Could not remove admin") from exc
        log.info("removed admin %s (%s rows)", user_id, removed)

    def list_admins(self) -> List[AdminUser]:
        """Roster entries with the email of each user.

        Ids the identity provider no longer knows are listed with the email
        ``"unknown user"``.
        """
        try:
            entries = [AdminRosterEntry(**row)
                       for row in self.store.select(ADMIN_TABLE, ["id"])]
        except Exception as exc:
            log.error("listing admins failed: %s", exc)
            raise StoreFailure("Could not fetch admins") from exc
        if not entries:
            return []

        try:
            users = self.identity.list_users()
        except Exception as exc:
            log.error("listing users failed: %s", exc)
            raise StoreFailure("Could not fetch the list of users") from exc

        emails: Dict[str, Optional[str]] = {user.user_id: user.email for user in users}
        return [AdminUser(id=entry.id, email=emails.get(entry.id) or UNKNOWN_EMAIL)
                for entry in entries]
