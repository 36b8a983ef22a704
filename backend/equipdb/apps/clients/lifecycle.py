# backend/equipdb/apps/clients/lifecycle.py
"""
Equipment service lifecycle.

States: none -> notified -> completed. Transitions are
permissive: both actions are accepted from any current status, and
"completed" can be confirmed again on the next service cycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Optional

from equipdb.utils.timeutils import add_years, utcnow
from .models import Equipment, ServiceStatus

SERVICE_INTERVAL_YEARS = 1


@dataclass
class InvalidServiceAction(Exception):
    action: Optional[str]

    def __str__(self) -> str:
        return "Invalid action type"


def default_due_date(
    purchase_date: Optional[date],
    service_due_date: Optional[date] = None,
) -> Optional[date]:
    """
    A caller-supplied due date always wins; otherwise one calendar year
    after purchase. No purchase date means no due date.
    """
    if service_due_date is not None:
        return service_due_date
    if purchase_date is None:
        return None
    return add_years(purchase_date, SERVICE_INTERVAL_YEARS)


def _notify(item: Equipment, now: datetime) -> None:
    item.service_status = ServiceStatus.NOTIFIED
    item.last_service_notified = now


def _confirm(item: Equipment, now: datetime) -> None:
    base = item.service_due_date or now.date()
    item.service_due_date = add_years(base, SERVICE_INTERVAL_YEARS)
    item.service_status = ServiceStatus.COMPLETED


ACTIONS: Dict[str, Callable[[Equipment, datetime], None]] = {
    "notify": _notify,
    "confirm": _confirm,
}


def apply_service_action(
    item: Equipment,
    action: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> Equipment:
    """
    Apply `action` to one equipment item in place. The caller commits.

    Raises InvalidServiceAction for anything other than notify / confirm.
    """
    handler = ACTIONS.get(action or "")
    if handler is None:
        raise InvalidServiceAction(action)
    handler(item, now or utcnow())
    return item
