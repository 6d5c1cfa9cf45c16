from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from catalog.authz.context import AuthContext
from catalog.authz.enums import Action, Resource
from catalog.db.session import get_db
from catalog.models.catalog import Product
from catalog.models.user import User
from catalog.schemas.security import UserCreateIn, UserOut, UserUpdateIn
from catalog.security.dependencies import require

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

NOT_FOUND = "User not found"


@router.get("", response_model=list[UserOut])
def list_users(
    role: str | None = None,
    is_active: bool | None = None,
    _ctx: AuthContext = Depends(require(Resource.USERS, Action.VIEW)),
    db: Session = Depends(get_db),
) -> list[User]:
    stmt = select(User).order_by(User.id)
    if role is not None:
        stmt = stmt.where(User.role == role)
    if is_active is not None:
        stmt = stmt.where(User.is_active.is_(is_active))
    return list(db.scalars(stmt).all())


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    _ctx: AuthContext = Depends(require(Resource.USERS, Action.VIEW)),
    db: Session = Depends(get_db),
) -> User:
    return _get_or_404(db, user_id)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreateIn,
    _ctx: AuthContext = Depends(require(Resource.USERS, Action.CREATE)),
    db: Session = Depends(get_db),
) -> User:
    email = payload.email.lower()
    if db.scalars(select(User).where(User.email == email)).first() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already registered")

    user = User(
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role.value,
        is_active=payload.is_active,
    )
    user.set_password(payload.password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s created with role %s", user.id, user.role)
    return user


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdateIn,
    ctx: AuthContext = Depends(require(Resource.USERS, Action.UPDATE)),
    db: Session = Depends(get_db),
) -> User:
    user = _get_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)

    if user.id == ctx.user_id and (changes.get("is_active") is False or changes.get("role") not in (None, user.role)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change your own role or deactivate your own account",
        )

    for field, value in changes.items():
        if value is None:
            continue
        setattr(user, field, value.value if field == "role" else value)

    db.commit()
    db.refresh(user)
    if "role" in changes or "is_active" in changes:
        logger.info("User %s updated by %s: role=%s active=%s", user.id, ctx.user_id, user.role, user.is_active)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    ctx: AuthContext = Depends(require(Resource.USERS, Action.DELETE)),
    db: Session = Depends(get_db),
) -> None:
    user = _get_or_404(db, user_id)
    if user.id == ctx.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    # Their products stay in the catalog without an owner.
    db.execute(
        update(Product)
        .where(Product.seller_id == user.id)
        .values(seller_id=None)
        .execution_options(synchronize_session="fetch")
    )
    db.delete(user)
    db.commit()
    logger.info("User %s deleted by %s", user_id, ctx.user_id)


def _get_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return user
