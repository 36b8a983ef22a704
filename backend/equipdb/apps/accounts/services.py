from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from equipdb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    needs_rehash,
    verify_password,
)
from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AuthenticationError(Exception):
    """Raised when login credentials are invalid or the account is inactive."""


class DuplicateEmailError(ValueError):
    """Raised when creating a user whose email is already taken."""


class ManagerHasClientsError(ValueError):
    """Raised when demoting a manager who still owns clients."""


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def _normalise_email(value: str) -> str:
    return value.strip().lower()


def parse_role(value: str) -> models.UserRole:
    """Raise ValueError for anything outside admin / supervisor / manager."""
    return models.UserRole((value or "").strip().lower())


# ---------------------------------------------------------------------------
# User fetch helpers
# ---------------------------------------------------------------------------


def get_user_by_id(db: Session, user_id: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    email = _normalise_email(email)
    return db.query(models.User).filter(models.User.email == email).first()


def get_manager(db: Session, user_id: Optional[str]) -> Optional[models.User]:
    """Return the user only if it exists and has the manager role."""
    if not user_id:
        return None
    user = get_user_by_id(db, user_id)
    if user is None or user.role != models.UserRole.MANAGER:
        return None
    return user


def list_users(db: Session) -> List[models.User]:
    return db.query(models.User).order_by(models.User.created_at.asc()).all()


def list_managers(db: Session) -> List[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.role == models.UserRole.MANAGER)
        .order_by(models.User.name.asc())
        .all()
    )


# ---------------------------------------------------------------------------
# User lifecycle
# ---------------------------------------------------------------------------


def create_user(db: Session, data: schemas.UserCreate) -> models.User:
    email = _normalise_email(data.email)

    if get_user_by_email(db, email) is not None:
        raise DuplicateEmailError("A user with this email already exists.")

    user = models.User(
        name=data.name.strip(),
        email=email,
        role=data.role,
        hashed_password=get_password_hash(data.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
    return user


def update_role(
    db: Session,
    user_id: str,
    role: models.UserRole,
) -> Optional[models.User]:
    user = get_user_by_id(db, user_id)
    if user is None:
        return None

    previous = user.role
    if previous == models.UserRole.MANAGER and role != models.UserRole.MANAGER and user.clients:
        raise ManagerHasClientsError("User still owns clients; reassign them first")

    user.role = role
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(
        "User role changed",
        extra={"user_id": user.id, "from_role": previous.value, "to_role": role.value},
    )
    return user


# ---------------------------------------------------------------------------
# Authentication and access tokens
# ---------------------------------------------------------------------------


def authenticate_user(db: Session, *, login_req: schemas.LoginRequest) -> models.User:
    """
    Password-based login by email.

    Raises AuthenticationError with one generic message for every failure
    so callers cannot probe which emails exist.
    """
    user = get_user_by_email(db, login_req.email)

    if user is None or not user.is_active:
        logger.info("Login failed: unknown or inactive account")
        raise AuthenticationError("Invalid email or password")

    if not verify_password(login_req.password, user.hashed_password):
        logger.info("Login failed: bad password", extra={"user_id": user.id})
        raise AuthenticationError("Invalid email or password")

    # Upgrade legacy bcrypt hashes on successful login.
    if needs_rehash(user.hashed_password):
        user.hashed_password = get_password_hash(login_req.password)
        db.add(user)
        db.commit()
        db.refresh(user)

    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "sub": str(user.id),
        "role": (
            user.role.value if hasattr(user.role, "value") else str(user.role)
        ),
    }

    access_token = create_access_token(
        data=payload,
        expires_delta=expires_delta,
    )
    return access_token, int(ACCESS_TOKEN_EXPIRE_MINUTES * 60)
