# backend/equipdb/apps/clients/policy.py
"""
Who may do what to a client record.

`is_allowed` is a pure function of (role, caller id, owner id, operation);
routers call it (via `require_operation` / `ensure_client_access`) before
any read or write.
"""

from __future__ import annotations

import enum
from typing import Dict, FrozenSet, Optional

from fastapi import Depends, HTTPException, status

from equipdb.apps.accounts import models as account_models
from equipdb.apps.accounts.models import UserRole
from equipdb.security import get_current_active_user


class Operation(str, enum.Enum):
    LIST_CLIENTS = "list_clients"
    CREATE_CLIENT = "create_client"
    READ_CLIENT = "read_client"
    UPDATE_CLIENT = "update_client"
    HARD_DELETE_CLIENT = "hard_delete_client"
    SOFT_DELETE_CLIENT = "soft_delete_client"
    REASSIGN_CLIENT = "reassign_client"
    SERVICE_ACTION = "service_action"
    SOON_EXPIRING = "soon_expiring"
    VIEW_STATS = "view_stats"


_SUPERVISOR = UserRole.SUPERVISOR
_MANAGER = UserRole.MANAGER
_ADMIN = UserRole.ADMIN

ROLE_PERMISSIONS: Dict[Operation, FrozenSet[UserRole]] = {
    Operation.LIST_CLIENTS: frozenset({_SUPERVISOR, _MANAGER}),
    Operation.CREATE_CLIENT: frozenset({_SUPERVISOR, _MANAGER}),
    Operation.READ_CLIENT: frozenset({_SUPERVISOR, _MANAGER}),
    Operation.UPDATE_CLIENT: frozenset({_SUPERVISOR, _MANAGER}),
    Operation.HARD_DELETE_CLIENT: frozenset({_ADMIN}),
    Operation.SOFT_DELETE_CLIENT: frozenset({_SUPERVISOR}),
    Operation.REASSIGN_CLIENT: frozenset({_SUPERVISOR}),
    Operation.SERVICE_ACTION: frozenset({_SUPERVISOR, _MANAGER}),
    Operation.SOON_EXPIRING: frozenset({_MANAGER}),
    Operation.VIEW_STATS: frozenset({_SUPERVISOR}),
}

# Operations where a manager may only touch clients they own.
OWNER_SCOPED: FrozenSet[Operation] = frozenset(
    {
        Operation.READ_CLIENT,
        Operation.UPDATE_CLIENT,
        Operation.SERVICE_ACTION,
    }
)


def role_allows(role: Optional[UserRole], operation: Operation) -> bool:
    return role in ROLE_PERMISSIONS.get(operation, frozenset())


def is_allowed(
    role: Optional[UserRole],
    user_id: Optional[str],
    operation: Operation,
    owner_id: Optional[str] = None,
) -> bool:
    if not role_allows(role, operation):
        return False
    if role == _MANAGER and operation in OWNER_SCOPED:
        return owner_id is not None and owner_id == user_id
    return True


def manager_scope(user: account_models.User) -> Optional[str]:
    """
    Manager id to filter client lists by, or None for "all clients".
    """
    if user.role == _MANAGER:
        return user.id
    return None


# ---------------------------------------------------------------------------
# FASTAPI HELPERS
# ---------------------------------------------------------------------------


def require_operation(operation: Operation):
    """Dependency factory: role gate for `operation`, ownership checked later."""

    def dependency(
        current_user: account_models.User = Depends(get_current_active_user),
    ) -> account_models.User:
        if not role_allows(current_user.role, operation):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions for this operation",
            )
        return current_user

    return dependency


def ensure_client_access(
    user: account_models.User,
    operation: Operation,
    owner_id: Optional[str],
) -> None:
    if not is_allowed(user.role, user.id, operation, owner_id=owner_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
