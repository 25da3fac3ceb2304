"""Exceptions raised by the admin roster and its collaborators."""


class RosterError(RuntimeError):
    """Base for failures of admin roster management."""


class AddAdminError(RosterError):
    """Failed to grant admin privilege to a user."""


class UserNotFound(AddAdminError):
    """No registered user has the requested email."""


class AlreadyAdmin(AddAdminError):
    """The user is already on the admin roster."""


class StoreFailure(AddAdminError):
    """The row store or identity provider failed.

    Also raised by removal and listing. The underlying error is kept as
    ``__cause__``.
    """


class RowStoreError(RuntimeError):
    """A query against the row store failed."""


class DuplicateRow(RowStoreError):
    """An insert violated a uniqueness constraint."""


class IdentityProviderError(RuntimeError):
    """The identity provider could not complete a request."""


class AuthenticationFailed(IdentityProviderError):
    """Failed to authenticate user with provided credentials."""


class InvalidResetToken(AuthenticationFailed):
    """The password reset token is unknown, used or expired."""
