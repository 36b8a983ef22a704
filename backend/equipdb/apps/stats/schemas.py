# backend/equipdb/apps/stats/schemas.py

from __future__ import annotations

from datetime import date as DateType, datetime as DateTimeType
from typing import List, Optional

from pydantic import Field

from equipdb.apps.clients.models import ServiceStatus
from equipdb.schemas import APIModel


class TotalClients(APIModel):
    total: int


class ExpiringCounts(APIModel):
    expiring_this_month: int
    notified_this_month: int


class TotalManagers(APIModel):
    total_managers: int


class ManagerClientsSummary(APIModel):
    manager_id: str
    name: str
    email: str
    total_clients: int
    notifications_sent_last_month: int
    services_done_last_month: int
    expected_due_next_month: int


# ---------------- MANAGER DETAILS ----------------


class Period(APIModel):
    from_: DateTimeType = Field(alias="from")
    to: DateTimeType


class DetailEquipment(APIModel):
    model: Optional[str] = None
    serial: Optional[str] = None
    service_status: ServiceStatus
    last_service_notified: Optional[DateTimeType] = None
    service_due_date: Optional[DateType] = None


class DetailClient(APIModel):
    client_id: str
    contact_person: str
    company: Optional[str] = None
    equipment: List[DetailEquipment]


class ManagerDetails(APIModel):
    manager_id: str
    name: str
    period: Period
    notifications_sent: int
    services_completed: int
    expected_due: int
    clients: List[DetailClient]
