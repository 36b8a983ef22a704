# backend/equipdb/apps/stats/services.py
"""
Read-only reporting over clients and their equipment.

Counts that only need a number run in SQL; per-manager reports load the
manager's clients (equipment comes along via selectin) and aggregate in
memory.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from equipdb.apps.accounts import models as account_models
from equipdb.apps.accounts import services as account_services
from equipdb.apps.clients import models as client_models
from equipdb.apps.clients import schemas as client_schemas
from equipdb.utils.timeutils import add_months, as_naive_utc, month_bounds, utcnow
from . import schemas

logger = logging.getLogger(__name__)

DETAILS_DEFAULT_WINDOW = timedelta(days=30)

Equipment = client_models.Equipment
ServiceStatus = client_models.ServiceStatus


def _in_range(value, start, end) -> bool:
    return value is not None and start <= value <= end


def _due_at(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time()) if value is not None else None


def _clients_of(db: Session, manager_id: str) -> List[client_models.Client]:
    return (
        db.query(client_models.Client)
        .filter(client_models.Client.manager_id == manager_id)
        .order_by(client_models.Client.created_at.asc())
        .all()
    )


# ---------------------------------------------------------------------------
# Dashboard counters
# ---------------------------------------------------------------------------


def total_clients(db: Session) -> schemas.TotalClients:
    return schemas.TotalClients(total=db.query(client_models.Client).count())


def _count_clients_with(db: Session, *criteria) -> int:
    return (
        db.query(func.count(distinct(Equipment.client_id)))
        .filter(*criteria)
        .scalar()
        or 0
    )


def expiring_counts(db: Session, today: Optional[date] = None) -> schemas.ExpiringCounts:
    """
    Clients with at least one item due this calendar month and not yet
    completed, and those with at least one such item already notified.
    """
    first, last = month_bounds(today or utcnow().date())
    in_month = Equipment.service_due_date.between(first, last)

    return schemas.ExpiringCounts(
        expiring_this_month=_count_clients_with(
            db, in_month, Equipment.service_status != ServiceStatus.COMPLETED
        ),
        notified_this_month=_count_clients_with(
            db, in_month, Equipment.service_status == ServiceStatus.NOTIFIED
        ),
    )


def total_managers(db: Session) -> schemas.TotalManagers:
    count = (
        db.query(account_models.User)
        .filter(account_models.User.role == account_models.UserRole.MANAGER)
        .count()
    )
    return schemas.TotalManagers(total_managers=count)


# ---------------------------------------------------------------------------
# Per-manager reports
# ---------------------------------------------------------------------------


def clients_summary_per_manager(
    db: Session,
    today: Optional[date] = None,
) -> List[schemas.ManagerClientsSummary]:
    today = today or utcnow().date()
    last_first, last_last = month_bounds(today, -1)
    next_first, next_last = month_bounds(today, 1)

    summary: List[schemas.ManagerClientsSummary] = []
    for manager in account_services.list_managers(db):
        clients = _clients_of(db, manager.id)
        notified = completed = due_next = 0

        for client in clients:
            for item in client.equipment:
                sent = item.last_service_notified
                if sent is not None and _in_range(sent.date(), last_first, last_last):
                    if item.service_status == ServiceStatus.NOTIFIED:
                        notified += 1
                    elif item.service_status == ServiceStatus.COMPLETED:
                        completed += 1
                if _in_range(item.service_due_date, next_first, next_last):
                    due_next += 1

        summary.append(
            schemas.ManagerClientsSummary(
                manager_id=manager.id,
                name=manager.name,
                email=manager.email,
                total_clients=len(clients),
                notifications_sent_last_month=notified,
                services_done_last_month=completed,
                expected_due_next_month=due_next,
            )
        )
    return summary


def manager_details(
    db: Session,
    manager_id: str,
    *,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Optional[schemas.ManagerDetails]:
    """
    Activity for one manager inside [date_from, date_to], both ends
    inclusive. Defaults to 30 days either side of now. A due date counts
    from midnight of that day.

    Returns None when `manager_id` is not a manager.
    """
    manager = account_services.get_manager(db, manager_id)
    if manager is None:
        return None

    now = now or utcnow()
    start = as_naive_utc(date_from) or now - DETAILS_DEFAULT_WINDOW
    end = as_naive_utc(date_to) or now + DETAILS_DEFAULT_WINDOW

    notified = completed = expected = 0
    clients: List[schemas.DetailClient] = []

    for client in _clients_of(db, manager.id):
        matching: List[schemas.DetailEquipment] = []
        for item in client.equipment:
            notified_in_range = _in_range(item.last_service_notified, start, end)
            due_in_range = _in_range(_due_at(item.service_due_date), start, end)

            if notified_in_range:
                if item.service_status == ServiceStatus.NOTIFIED:
                    notified += 1
                elif item.service_status == ServiceStatus.COMPLETED:
                    completed += 1
            if due_in_range:
                expected += 1

            if notified_in_range or due_in_range:
                matching.append(schemas.DetailEquipment.model_validate(item))

        if matching:
            clients.append(
                schemas.DetailClient(
                    client_id=client.id,
                    contact_person=client.client_contact_person,
                    company=client.company_name,
                    equipment=matching,
                )
            )

    return schemas.ManagerDetails(
        manager_id=manager.id,
        name=manager.name,
        period=schemas.Period(from_=start, to=end),
        notifications_sent=notified,
        services_completed=completed,
        expected_due=expected,
        clients=clients,
    )


def soon_expiring(
    db: Session,
    manager: account_models.User,
    *,
    months: int = 1,
    only_unnotified: bool = False,
    today: Optional[date] = None,
) -> List[client_schemas.SoonExpiringClient]:
    """
    The manager's clients with equipment due between today and
    `months` months from today, soonest first. Clients with nothing due
    are left out.
    """
    today = today or utcnow().date()
    try:
        until = add_months(today, months)
    except (ValueError, OverflowError):
        until = date.max if months > 0 else date.min

    result: List[client_schemas.SoonExpiringClient] = []
    for client in _clients_of(db, manager.id):
        due = [
            item
            for item in client.equipment
            if _in_range(item.service_due_date, today, until)
            and not (only_unnotified and item.last_service_notified is not None)
        ]
        if not due:
            continue
        due.sort(key=lambda item: item.service_due_date)
        result.append(
            client_schemas.SoonExpiringClient(
                id=client.id,
                company_name=client.company_name,
                manager_id=client.manager_id,
                equipment=[client_schemas.EquipmentRead.model_validate(i) for i in due],
            )
        )

    logger.debug(
        "Soon-expiring lookup",
        extra={"manager_id": manager.id, "months": months, "clients": len(result)},
    )
    return result
