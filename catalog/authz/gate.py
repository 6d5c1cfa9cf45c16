"""
Single authorization decision used by every endpoint.

Order of checks:
    1. no identity / deactivated identity -> forbidden (reason ``unauthenticated``;
       the HTTP layer answers 401 for it)
    2. admin -> allow, no ownership check at all
    3. role lacks the action on the resource -> forbidden
    4. owned resource + mutating action on an existing record -> resolve the
       owner; missing record -> not found, different owner -> forbidden
    5. allow

Only ``ResourceNotFound`` is caught. Store failures raised by the owner
lookups travel up unchanged so that they end up as a 500, never as a
decision.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging

from .context import AuthContext
from .enums import MUTATING_ACTIONS, OWNED_RESOURCES, Action, Resource, Role
from .errors import AuthenticationFailure, PermissionDenied, ResourceNotFound
from .ownership import OwnershipResolver
from .permissions import has_permission

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    ALLOW = "allow"
    DENY_FORBIDDEN = "deny_forbidden"
    DENY_NOT_FOUND = "deny_not_found"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION = "permission"
    OWNERSHIP = "ownership"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AuthzResult:
    decision: Decision
    reason: DenyReason | None = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW


ALLOWED = AuthzResult(Decision.ALLOW)

_MESSAGES = {
    DenyReason.UNAUTHENTICATED: "Authentication required",
    DenyReason.PERMISSION: "You do not have permission to perform this action",
    DenyReason.OWNERSHIP: "You are not authorized to perform this action on this resource",
    DenyReason.NOT_FOUND: "Resource not found",
}


class AuthorizationGate:
    def __init__(self, resolver: OwnershipResolver) -> None:
        self._resolver = resolver

    def authorize(
        self,
        ctx: AuthContext | None,
        resource: Resource,
        action: Action,
        resource_id: int | None = None,
    ) -> AuthzResult:
        if ctx is None or not ctx.is_active:
            return self._deny(ctx, resource, action, resource_id, Decision.DENY_FORBIDDEN, DenyReason.UNAUTHENTICATED)

        if ctx.role == Role.ADMIN:
            logger.debug("authz allow (admin) user=%s resource=%s action=%s id=%s", ctx.user_id, resource.value, action.value, resource_id)
            return ALLOWED

        if not has_permission(ctx.role, resource, action):
            return self._deny(ctx, resource, action, resource_id, Decision.DENY_FORBIDDEN, DenyReason.PERMISSION)

        if resource in OWNED_RESOURCES and action in MUTATING_ACTIONS and resource_id is not None:
            try:
                owner_id = self._resolver.resolve_owner(resource, resource_id)
            except ResourceNotFound:
                return self._deny(ctx, resource, action, resource_id, Decision.DENY_NOT_FOUND, DenyReason.NOT_FOUND)
            if owner_id != ctx.user_id:
                return self._deny(ctx, resource, action, resource_id, Decision.DENY_FORBIDDEN, DenyReason.OWNERSHIP)

        logger.debug("authz allow user=%s role=%s resource=%s action=%s id=%s", ctx.user_id, ctx.role, resource.value, action.value, resource_id)
        return ALLOWED

    def enforce(
        self,
        ctx: AuthContext | None,
        resource: Resource,
        action: Action,
        resource_id: int | None = None,
        *,
        not_found_message: str | None = None,
    ) -> AuthContext:
        """Raising form of ``authorize`` for request handlers; returns the allowed context."""

        result = self.authorize(ctx, resource, action, resource_id)
        if ctx is not None and result.allowed:
            return ctx
        if ctx is None or result.reason is DenyReason.UNAUTHENTICATED:
            raise AuthenticationFailure(_MESSAGES[DenyReason.UNAUTHENTICATED])
        if result.decision is Decision.DENY_NOT_FOUND:
            raise ResourceNotFound(not_found_message or _MESSAGES[DenyReason.NOT_FOUND])
        raise PermissionDenied(_MESSAGES[result.reason or DenyReason.PERMISSION])

    @staticmethod
    def _deny(
        ctx: AuthContext | None,
        resource: Resource,
        action: Action,
        resource_id: int | None,
        decision: Decision,
        reason: DenyReason,
    ) -> AuthzResult:
        logger.info(
            "authz deny reason=%s user=%s role=%s resource=%s action=%s id=%s",
            reason.value,
            ctx.user_id if ctx else None,
            ctx.role if ctx else None,
            resource.value,
            action.value,
            resource_id,
        )
        return AuthzResult(decision, reason)
