from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.authz.context import AuthContext
from catalog.authz.enums import Action, Resource, Role
from catalog.db.session import get_db
from catalog.models.catalog import Category, Product
from catalog.schemas.catalog import CategoryIn, CategoryOut, CategoryTreeOut, CategoryUpdate
from catalog.security.dependencies import get_auth_context, require

router = APIRouter(prefix="/categories", tags=["categories"])

NOT_FOUND = "Category not found"


@router.get("", response_model=list[CategoryOut])
def list_categories(
    include_inactive: bool = False,
    ctx: AuthContext | None = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> list[Category]:
    stmt = select(Category).order_by(Category.name)
    # Admin sessions are not visibility-scoped, so inactive rows must be
    # excluded explicitly unless asked for.
    is_admin = ctx is not None and ctx.is_active and ctx.role == Role.ADMIN
    if not (include_inactive and is_admin):
        stmt = stmt.where(Category.is_active.is_(True))
    return list(db.scalars(stmt).all())


@router.get("/tree", response_model=list[CategoryTreeOut])
def category_tree(db: Session = Depends(get_db)) -> list[CategoryTreeOut]:
    categories = db.scalars(
        select(Category).where(Category.is_active.is_(True)).order_by(Category.name)
    ).all()

    # Built from CategoryOut so the ORM `children` relationship is not read.
    nodes = {c.id: CategoryTreeOut(**CategoryOut.model_validate(c).model_dump()) for c in categories}
    roots: list[CategoryTreeOut] = []
    for category in categories:
        node = nodes[category.id]
        parent = nodes.get(category.parent_id) if category.parent_id is not None else None
        if parent is not None:
            parent.children.append(node)
        elif category.parent_id is None:
            roots.append(node)
        # Children of an inactive parent are hidden along with it.
    return roots


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(
    category_id: int,
    _ctx: AuthContext | None = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Category:
    # Inactive categories are filtered out for non-admin viewers (catalog/db/filters.py).
    category = db.get(Category, category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return category


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryIn,
    _ctx: AuthContext = Depends(require(Resource.CATEGORIES, Action.CREATE)),
    db: Session = Depends(get_db),
) -> Category:
    if payload.parent_id is not None:
        _get_or_400(db, payload.parent_id)
    _ensure_unique_name(db, payload.name, payload.parent_id)

    category = Category(**payload.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    _ctx: AuthContext = Depends(require(Resource.CATEGORIES, Action.UPDATE)),
    db: Session = Depends(get_db),
) -> Category:
    category = _get_or_404(db, category_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("parent_id") is not None:
        if changes["parent_id"] == category.id or _is_descendant(db, changes["parent_id"], category.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A category cannot be its own ancestor")
        _get_or_400(db, changes["parent_id"])

    name = changes.get("name", category.name)
    parent_id = changes.get("parent_id", category.parent_id)
    if (name, parent_id) != (category.name, category.parent_id):
        _ensure_unique_name(db, name, parent_id, exclude_id=category.id)

    for field, value in changes.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    _ctx: AuthContext = Depends(require(Resource.CATEGORIES, Action.DELETE)),
    db: Session = Depends(get_db),
) -> None:
    category = _get_or_404(db, category_id)

    in_use = db.execute(
        select(Product.id).where(Product.category_id == category.id).limit(1).execution_options(include_hidden=True)
    ).first()
    if in_use is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category still has products")

    # Subcategories are detached (become roots), not deleted.
    for child in db.scalars(select(Category).where(Category.parent_id == category.id)).all():
        child.parent_id = None

    db.delete(category)
    db.commit()


def _get_or_404(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return category


def _get_or_400(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=NOT_FOUND)
    return category


def _ensure_unique_name(db: Session, name: str, parent_id: int | None, exclude_id: int | None = None) -> None:
    stmt = select(Category.id).where(Category.name == name)
    stmt = stmt.where(Category.parent_id.is_(None) if parent_id is None else Category.parent_id == parent_id)
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    if db.execute(stmt.execution_options(include_hidden=True)).first() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name already exists at this level")


def _is_descendant(db: Session, candidate_id: int, ancestor_id: int) -> bool:
    """True if `candidate_id` sits somewhere below `ancestor_id`."""
    current = db.get(Category, candidate_id)
    seen: set[int] = set()
    while current is not None and current.parent_id is not None and current.id not in seen:
        if current.parent_id == ancestor_id:
            return True
        seen.add(current.id)
        current = db.get(Category, current.parent_id)
    return False
