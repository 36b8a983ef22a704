# backend/equipdb/apps/accounts/router_users.py

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from equipdb.database import get_db
from equipdb.security import get_current_active_user, require_roles
from . import models, schemas, services

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=List[schemas.UserRead],
    summary="List all users (admin only)",
)
def list_users(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("admin")),
):
    return services.list_users(db)


@router.get(
    "/profile",
    response_model=schemas.UserRead,
    summary="Current user's own profile",
)
def get_profile(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    user = services.get_user_by_id(db, current_user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch(
    "/{user_id}/role",
    response_model=schemas.RoleUpdateResponse,
    summary="Change a user's role (admin only)",
)
def update_user_role(
    user_id: str,
    payload: schemas.RoleUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("admin")),
):
    try:
        role = services.parse_role(payload.role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid role",
        )

    try:
        user = services.update_role(db, user_id, role)
    except services.ManagerHasClientsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    return schemas.RoleUpdateResponse(
        message="User role updated",
        user=schemas.UserRead.model_validate(user),
    )
