"""
Authorization core: role permissions, seller ownership and the gate that
combines them.

This package has no dependency on other catalog packages (db, routers, ...).
Persistence plugs in through ``OwnerLookup`` implementations.
"""

from .context import AuthContext
from .enums import Action, Resource, Role
from .errors import AuthenticationFailure, AuthzError, InternalFailure, PermissionDenied, ResourceNotFound
from .gate import AuthorizationGate, AuthzResult, Decision, DenyReason
from .ownership import OwnerLookup, OwnershipResolver, ParentRef
from .permissions import allowed_actions, has_permission

__all__ = [
    "Action",
    "AuthContext",
    "AuthenticationFailure",
    "AuthorizationGate",
    "AuthzError",
    "AuthzResult",
    "Decision",
    "DenyReason",
    "InternalFailure",
    "OwnerLookup",
    "OwnershipResolver",
    "ParentRef",
    "PermissionDenied",
    "ResourceNotFound",
    "Resource",
    "Role",
    "allowed_actions",
    "has_permission",
]
