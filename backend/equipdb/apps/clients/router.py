# backend/equipdb/apps/clients/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from equipdb.apps.accounts import models as account_models
from equipdb.apps.stats import services as stats_services
from equipdb.database import get_db
from equipdb.schemas import MessageResponse
from . import lifecycle, models, schemas, services
from .policy import Operation, ensure_client_access, require_operation

router = APIRouter(prefix="/clients", tags=["clients"])


def _get_client_or_404(db: Session, client_id: str) -> models.Client:
    client = services.get_client(db, client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


def _parse_months(value: Optional[str]) -> int:
    # Anything unparseable or non-positive falls back to one month.
    try:
        months = int(value) if value is not None else 1
    except ValueError:
        return 1
    return months if months > 0 else 1


# ---------------------------------------------------------------------------
# COLLECTION
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=List[schemas.ClientRead],
    summary="List clients (managers see only their own)",
)
def list_clients(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.LIST_CLIENTS)),
):
    return services.list_clients(db, current_user)


@router.post(
    "",
    response_model=schemas.ClientRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a client",
)
def create_client(
    payload: schemas.ClientCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.CREATE_CLIENT)),
):
    """
    Managers always create clients for themselves; supervisors must name
    an existing manager in `managerId`.
    """
    try:
        return services.create_client(db, actor=current_user, data=payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get(
    "/soon-expiring",
    response_model=List[schemas.SoonExpiringClient],
    summary="Own clients with equipment due soon (managers only)",
)
def soon_expiring(
    months: Optional[str] = Query(None),
    notified: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.SOON_EXPIRING)),
):
    result = stats_services.soon_expiring(
        db,
        current_user,
        months=_parse_months(months),
        only_unnotified=(notified == "false"),
    )
    if not result:
        raise HTTPException(status_code=404, detail="No soon-expiring equipment found")
    return result


# ---------------------------------------------------------------------------
# SINGLE CLIENT
# ---------------------------------------------------------------------------


@router.get("/{client_id}", response_model=schemas.ClientRead)
def get_client(
    client_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.READ_CLIENT)),
):
    client = _get_client_or_404(db, client_id)
    ensure_client_access(current_user, Operation.READ_CLIENT, client.manager_id)
    return client


@router.patch("/{client_id}", response_model=schemas.ClientUpdateResponse)
def update_client(
    client_id: str,
    payload: schemas.ClientUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.UPDATE_CLIENT)),
):
    client = _get_client_or_404(db, client_id)
    ensure_client_access(current_user, Operation.UPDATE_CLIENT, client.manager_id)

    client = services.update_client(db, client, payload)
    return schemas.ClientUpdateResponse(
        message="Client updated",
        client=schemas.ClientRead.model_validate(client),
    )


@router.delete("/{client_id}", response_model=MessageResponse)
def delete_client(
    client_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.HARD_DELETE_CLIENT)),
):
    if not services.hard_delete_client(db, client_id):
        raise HTTPException(status_code=404, detail="Client not found")
    return MessageResponse(message="Client deleted successfully")


@router.delete("/{client_id}/soft-delete", response_model=MessageResponse)
def soft_delete_client(
    client_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.SOFT_DELETE_CLIENT)),
):
    if services.soft_delete_client(db, client_id) is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return MessageResponse(message="Client marked as inactive")


@router.patch("/{client_id}/assign", response_model=schemas.ClientUpdateResponse)
def reassign_client(
    client_id: str,
    payload: schemas.AssignRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.REASSIGN_CLIENT)),
):
    try:
        client = services.reassign_client(db, client_id, payload.new_manager_id)
    except services.InvalidManagerError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")

    return schemas.ClientUpdateResponse(
        message="Client reassigned successfully",
        client=schemas.ClientRead.model_validate(client),
    )


# ---------------------------------------------------------------------------
# EQUIPMENT SERVICE ACTIONS
# ---------------------------------------------------------------------------


@router.patch(
    "/{client_id}/equipment/{equipment_id}/service-action",
    response_model=MessageResponse,
    summary="Record a service notification or completion",
)
def service_action(
    client_id: str,
    equipment_id: str,
    payload: schemas.ServiceActionRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_operation(Operation.SERVICE_ACTION)),
):
    client = _get_client_or_404(db, client_id)
    ensure_client_access(current_user, Operation.SERVICE_ACTION, client.manager_id)

    try:
        services.perform_service_action(db, client, equipment_id, payload.action)
    except services.EquipmentNotFoundError:
        raise HTTPException(status_code=404, detail="Equipment not found")
    except lifecycle.InvalidServiceAction as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    return MessageResponse(
        message=f"Service {payload.action} action completed successfully"
    )
