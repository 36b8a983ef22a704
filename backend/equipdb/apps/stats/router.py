# backend/equipdb/apps/stats/router.py

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from equipdb.apps.accounts import models as account_models
from equipdb.apps.clients.policy import Operation, require_operation
from equipdb.database import get_db
from . import schemas, services

router = APIRouter(prefix="/stats", tags=["stats"])

_supervisor = require_operation(Operation.VIEW_STATS)


@router.get("/total-clients", response_model=schemas.TotalClients)
def total_clients(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_supervisor),
):
    return services.total_clients(db)


@router.get(
    "/expiring",
    response_model=schemas.ExpiringCounts,
    summary="Clients with service due this month",
)
def expiring(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_supervisor),
):
    return services.expiring_counts(db)


@router.get("/total-managers", response_model=schemas.TotalManagers)
def total_managers(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_supervisor),
):
    return services.total_managers(db)


@router.get(
    "/clients-summary-per-manager",
    response_model=List[schemas.ManagerClientsSummary],
    summary="Client counts and last/next month activity per manager",
)
def clients_summary_per_manager(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_supervisor),
):
    return services.clients_summary_per_manager(db)


@router.get(
    "/manager/{manager_id}/details",
    response_model=schemas.ManagerDetails,
    summary="One manager's activity in a date window",
)
def manager_details(
    manager_id: str,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_supervisor),
):
    details = services.manager_details(
        db, manager_id, date_from=date_from, date_to=date_to
    )
    if details is None:
        raise HTTPException(status_code=404, detail="Manager not found")
    return details
