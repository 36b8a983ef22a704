# backend/equipdb/security.py
"""
Passwords, bearer tokens and the "who is calling" dependencies.

New passwords are hashed with Argon2id. Accounts migrated from the old
deployment still carry bcrypt hashes; those verify here and are upgraded
on the next successful login (see accounts.services.authenticate_user).
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Set, Union

import bcrypt
from argon2 import PasswordHasher
from argon2 import exceptions as argon2_exceptions
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .database import get_db
from equipdb.apps.accounts import models as account_models
from equipdb.apps.accounts.models import UserRole
from equipdb.apps.accounts.schemas import TokenData

SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
try:
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
except ValueError:
    ACCESS_TOKEN_EXPIRE_MINUTES = 60

LOGIN_PATH = "/auth/login"

# auto_error=False: a missing header must give the same 401 as a bad token.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"/api{LOGIN_PATH}", auto_error=False)


def set_token_url(api_prefix: str) -> None:
    """Point the OpenAPI password flow at the login route under `api_prefix`."""
    oauth2_scheme.model.flows.password.tokenUrl = f"{api_prefix}{LOGIN_PATH}"


BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

_argon2 = PasswordHasher(
    time_cost=int(os.getenv("ARGON2_TIME_COST", "3")),
    memory_cost=int(os.getenv("ARGON2_MEMORY_COST", "65536")),  # KiB
    parallelism=int(os.getenv("ARGON2_PARALLELISM", "2")),
    hash_len=int(os.getenv("ARGON2_HASH_LEN", "32")),
    salt_len=int(os.getenv("ARGON2_SALT_LEN", "16")),
)


# ---------------------------------------------------------------------------
# PASSWORDS
# ---------------------------------------------------------------------------


def get_password_hash(password: str) -> str:
    return _argon2.hash(password)


def _check_argon2(plain: str, hashed: str) -> bool:
    try:
        return _argon2.verify(hashed, plain)
    except (argon2_exceptions.VerificationError, argon2_exceptions.InvalidHashError):
        return False


def _check_bcrypt(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for empty input and for hash formats we do not know."""
    if not plain_password or not isinstance(hashed_password, str):
        return False
    if hashed_password.startswith("$argon2"):
        return _check_argon2(plain_password, hashed_password)
    if hashed_password.startswith(BCRYPT_PREFIXES):
        return _check_bcrypt(plain_password, hashed_password)
    return False


def needs_rehash(hashed_password: str) -> bool:
    """True for legacy (non-Argon2) hashes and Argon2 hashes with old parameters."""
    if not hashed_password.startswith("$argon2"):
        return True
    return _argon2.check_needs_rehash(hashed_password)


# ---------------------------------------------------------------------------
# TOKENS
# ---------------------------------------------------------------------------


def create_access_token(*, data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign `data` (expects at least a `sub`) with an `exp` claim added."""
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = dict(data, exp=datetime.now(timezone.utc) + lifetime)
    return jwt.encode(claims, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Return the token's claims as TokenData, or None when the token is
    malformed, expired, or has no subject.
    """
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
        return TokenData.model_validate(claims)
    except (JWTError, ValidationError):
        return None


# ---------------------------------------------------------------------------
# FASTAPI DEPENDENCIES
# ---------------------------------------------------------------------------


def _unauthorised() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> account_models.User:
    claims = decode_access_token(token) if token else None
    if claims is None:
        raise _unauthorised()

    user = db.get(account_models.User, claims.sub)
    if user is None:
        raise _unauthorised()
    return user


def get_current_active_user(
    current_user: account_models.User = Depends(get_current_user),
) -> account_models.User:
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user account",
        )
    return current_user


def _as_roles(values) -> Set[UserRole]:
    roles: Set[UserRole] = set()
    for value in values:
        try:
            roles.add(value if isinstance(value, UserRole) else UserRole(value))
        except ValueError:
            raise ValueError(f"Unknown role {value!r} passed to require_roles()")
    return roles


def require_roles(
    *allowed_roles: Union[UserRole, str],
) -> Callable[[account_models.User], account_models.User]:
    """
    Dependency factory: the caller must hold one of `allowed_roles`.
    Admins get no implicit pass.
    """
    allowed = _as_roles(allowed_roles)

    def dependency(
        current_user: account_models.User = Depends(get_current_active_user),
    ) -> account_models.User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions for this operation",
            )
        return current_user

    return dependency
