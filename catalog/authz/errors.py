"""Error taxonomy shared by the authorization core and the HTTP layer."""

from __future__ import annotations


class AuthzError(Exception):
    """Base class. ``status_code`` is the HTTP status the error maps to."""

    status_code = 500
    default_message = "Authorization error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailure(AuthzError):
    """Missing, invalid or expired token, or a deactivated account."""

    status_code = 401
    default_message = "Authentication required"


class PermissionDenied(AuthzError):
    status_code = 403
    default_message = "You do not have permission to perform this action"


class ResourceNotFound(AuthzError):
    """
    The record does not exist.

    Also used when an ownership check should not reveal that the record
    exists at all.
    """

    status_code = 404
    default_message = "Resource not found"


class InternalFailure(AuthzError):
    """The store could not answer (connection lost, query failed, ...)."""

    status_code = 500
    default_message = "Internal error while checking authorization"
