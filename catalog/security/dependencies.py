from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from catalog.authz.context import AuthContext
from catalog.authz.enums import Action, Resource
from catalog.authz.errors import AuthenticationFailure, ResourceNotFound
from catalog.authz.gate import AuthorizationGate
from catalog.db.owner_lookups import build_ownership_resolver
from catalog.db.session import get_db
from catalog.models.user import User
from catalog.security.auth import build_auth_context, extract_bearer_token, load_user


def get_auth_context(request: Request, db: Session = Depends(get_db)) -> AuthContext | None:
    """
    Identity for this request, or `None` for anonymous callers.

    Public routes accept anonymous callers; a token that is present but
    invalid is still rejected. The verified viewer is attached to the DB
    session so that reads are scoped to what it may see.
    """

    token = extract_bearer_token(request)
    if token is None:
        return None

    ctx = build_auth_context(db, token)
    request.state.auth_context = ctx
    db.info["viewer"] = ctx if ctx.is_active else None
    return ctx


def get_gate(db: Session = Depends(get_db)) -> AuthorizationGate:
    return AuthorizationGate(build_ownership_resolver(db))


def get_current_user(
    ctx: AuthContext | None = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> User:
    if ctx is None:
        raise AuthenticationFailure("You are not logged in. Please log in to access this resource.")
    if not ctx.is_active:
        raise AuthenticationFailure("Your account has been deactivated. Please contact an administrator.")
    return load_user(db, ctx.user_id)


def require(
    resource: Resource,
    action: Action,
    id_param: str | None = None,
    *,
    not_found_message: str | None = None,
) -> Callable[..., AuthContext]:
    """
    Dependency factory: run the gate for (resource, action[, path id]).

    Usage:
        @router.put("/products/{product_id}")
        def update(product_id: int, ctx: AuthContext = Depends(require(Resource.PRODUCTS, Action.UPDATE, "product_id"))):
            ...

    With `id_param`, the record id is read from the path so that sellers are
    checked for ownership of that exact record.
    """

    def dependency(
        request: Request,
        ctx: AuthContext | None = Depends(get_auth_context),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> AuthContext:
        resource_id = None
        if id_param is not None:
            resource_id = _path_int(request, id_param, not_found_message)
        return gate.enforce(ctx, resource, action, resource_id, not_found_message=not_found_message)

    return dependency


def _path_int(request: Request, name: str, not_found_message: str | None) -> int:
    raw = request.path_params.get(name)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ResourceNotFound(not_found_message) from exc
