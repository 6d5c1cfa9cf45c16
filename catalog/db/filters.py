from __future__ import annotations

from sqlalchemy import event, or_
from sqlalchemy.orm import Session, with_loader_criteria

from catalog.authz.enums import Role


@event.listens_for(Session, "do_orm_execute")
def _apply_visibility_filters(execute_state) -> None:
    """
    Transparent visibility scoping for catalog reads.

    Existing query code stays unchanged:
        db.scalars(select(Product)).all()
    returns only what the current viewer may see:
    - admin: everything
    - seller: active products plus their own inactive ones
    - buyer / anonymous: active products and categories only

    Only sessions created for a request are scoped (`Session.info["visibility_scoped"]`).
    Statements can opt out with `.execution_options(include_hidden=True)`.
    """

    if not execute_state.is_select:
        return
    if not execute_state.session.info.get("visibility_scoped"):
        return
    if execute_state.execution_options.get("include_hidden", False):
        return

    viewer = execute_state.session.info.get("viewer")
    if viewer is not None and viewer.role == Role.ADMIN:
        return

    # Local import to avoid cycles.
    from catalog.models.catalog import Category, Product  # noqa: WPS433 (local import)

    stmt = execute_state.statement

    if viewer is not None and viewer.role == Role.SELLER:
        seller_id = viewer.user_id
        product_criteria = with_loader_criteria(
            Product,
            lambda cls: or_(cls.is_active.is_(True), cls.seller_id == seller_id),
            include_aliases=True,
        )
    else:
        product_criteria = with_loader_criteria(Product, lambda cls: cls.is_active.is_(True), include_aliases=True)

    stmt = stmt.options(
        product_criteria,
        with_loader_criteria(Category, lambda cls: cls.is_active.is_(True), include_aliases=True),
    )

    execute_state.statement = stmt
