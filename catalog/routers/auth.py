from __future__ import annotations

from datetime import datetime
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.authz.context import AuthContext
from catalog.authz.enums import Role
from catalog.authz.errors import AuthenticationFailure
from catalog.authz.permissions import describe
from catalog.db.session import get_db
from catalog.models.user import User, hash_reset_token
from catalog.schemas.security import (
    ChangePasswordIn,
    ForgotPasswordIn,
    ForgotPasswordOut,
    LoginIn,
    PermissionsOut,
    RegisterIn,
    ResetPasswordIn,
    TokenOut,
    UpdateDetailsIn,
    UserOut,
)
from catalog.security.dependencies import get_auth_context, get_current_user
from catalog.security.tokens import issue_token
from catalog.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: User) -> TokenOut:
    return TokenOut(token=issue_token(user.id), user=UserOut.model_validate(user))


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterIn,
    ctx: AuthContext | None = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> TokenOut:
    email = payload.email.lower()
    if db.scalars(select(User).where(User.email == email)).first() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already registered")

    # Self-registration may pick seller or buyer; only an admin can mint another admin.
    role = payload.role or Role.BUYER
    if role == Role.ADMIN and not (ctx is not None and ctx.is_active and ctx.role == Role.ADMIN):
        role = Role.BUYER

    user = User(email=email, first_name=payload.first_name, last_name=payload.last_name, role=role.value)
    user.set_password(payload.password)
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Registered user %s with role %s", user.id, user.role)
    return _token_response(user)


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)) -> TokenOut:
    user = db.scalars(select(User).where(User.email == payload.email.lower())).first()
    if user is None or not user.check_password(payload.password):
        logger.info("Failed login attempt")
        raise AuthenticationFailure("Incorrect email or password")
    if not user.is_active:
        raise AuthenticationFailure("Your account has been deactivated. Please contact an administrator.")

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return _token_response(user)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> User:
    return user


@router.put("/me", response_model=UserOut)
def update_me(
    payload: UpdateDetailsIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    if payload.email is not None:
        email = payload.email.lower()
        taken = db.scalars(select(User).where(User.email == email, User.id != user.id)).first()
        if taken is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already registered")
        user.email = email
    if payload.first_name:
        user.first_name = payload.first_name
    if payload.last_name:
        user.last_name = payload.last_name

    db.commit()
    db.refresh(user)
    return user


@router.put("/password", response_model=TokenOut)
def change_password(
    payload: ChangePasswordIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TokenOut:
    if not user.check_password(payload.current_password):
        raise AuthenticationFailure("Your current password is incorrect")

    user.set_password(payload.new_password)
    db.commit()
    db.refresh(user)
    logger.info("User %s changed their password", user.id)
    return _token_response(user)


@router.post("/forgot-password", response_model=ForgotPasswordOut)
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db)) -> ForgotPasswordOut:
    user = db.scalars(select(User).where(User.email == payload.email.lower())).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="There is no user with that email address")

    token = user.create_password_reset_token()
    db.commit()
    logger.info("Password reset requested for user %s", user.id)

    # Without a mailer the token can only be handed back directly.
    exposed = token if get_settings().expose_reset_token else None
    return ForgotPasswordOut(message="Password reset token sent", reset_token=exposed)


@router.post("/reset-password/{token}", response_model=TokenOut)
def reset_password(token: str, payload: ResetPasswordIn, db: Session = Depends(get_db)) -> TokenOut:
    user = db.scalars(
        select(User).where(
            User.password_reset_token == hash_reset_token(token),
            User.password_reset_expires > datetime.utcnow(),
        )
    ).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token is invalid or has expired")

    user.set_password(payload.password)
    user.clear_password_reset()
    db.commit()
    db.refresh(user)
    logger.info("User %s reset their password", user.id)
    return _token_response(user)


@router.get("/permissions", response_model=PermissionsOut)
def my_permissions(user: User = Depends(get_current_user)) -> PermissionsOut:
    return PermissionsOut(role=user.role, permissions=describe(user.role))
