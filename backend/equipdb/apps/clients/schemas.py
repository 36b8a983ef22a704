"""
Pydantic schemas for the clients app.

Scope:
- Client master data (contact details, owning manager, active flag).
- Equipment items owned by a client and their service state.
- Bodies for the reassign / service-action endpoints.
- The manager's "soon expiring" view.
"""

from __future__ import annotations

from datetime import date as DateType, datetime as DateTimeType
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from equipdb.schemas import APIModel
from .models import ServiceStatus

E164_PATTERN = r"^\+?[1-9]\d{1,14}$"


def _strip(value):
    if isinstance(value, str):
        value = value.strip()
    return value


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return value


# ---------------- EQUIPMENT ----------------


class EquipmentIn(APIModel):
    """
    One equipment item as sent by the caller.

    `id` is only meaningful on updates: an item whose id matches an
    existing item keeps that key, anything else becomes a new item.
    """

    id: Optional[str] = None
    model: Optional[str] = Field(default=None, max_length=255)
    serial: Optional[str] = Field(default=None, max_length=255)
    purchase_date: Optional[DateType] = None
    service_status: Optional[ServiceStatus] = None
    last_service_notified: Optional[DateTimeType] = None
    service_due_date: Optional[DateType] = None


class EquipmentRead(APIModel):
    id: str
    model: Optional[str] = None
    serial: Optional[str] = None
    purchase_date: Optional[DateType] = None
    service_status: ServiceStatus
    last_service_notified: Optional[DateTimeType] = None
    service_due_date: Optional[DateType] = None


# ---------------- CLIENT ----------------


class ClientBase(APIModel):
    client_contact_person: str = Field(..., min_length=1, max_length=100)
    company_name: Optional[str] = Field(default=None, max_length=100)
    contact_email: EmailStr
    contact_phone: Optional[str] = Field(default=None, pattern=E164_PATTERN)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("client_contact_person", "contact_email", mode="before")
    @classmethod
    def _strip_required(cls, value):
        return _strip(value)

    @field_validator("company_name", "contact_phone", "notes", mode="before")
    @classmethod
    def _strip_optional(cls, value):
        return _blank_to_none(value)


class ClientCreate(ClientBase):
    """
    `manager_id` is ignored for managers (always themselves) and required
    for supervisors.
    """

    manager_id: Optional[str] = None
    equipment: List[EquipmentIn] = Field(default_factory=list)


class ClientUpdate(APIModel):
    """
    Partial update. Only the fields below can change through PATCH;
    the owning manager changes via /assign and the active flag via
    /soft-delete.
    """

    client_contact_person: Optional[str] = Field(default=None, min_length=1, max_length=100)
    company_name: Optional[str] = Field(default=None, max_length=100)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(default=None, pattern=E164_PATTERN)
    notes: Optional[str] = Field(default=None, max_length=500)
    equipment: Optional[List[EquipmentIn]] = None

    @field_validator("client_contact_person", "contact_email", mode="before")
    @classmethod
    def _strip_required(cls, value):
        return _strip(value)

    @field_validator("company_name", "contact_phone", "notes", mode="before")
    @classmethod
    def _strip_optional(cls, value):
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _required_fields_not_null(self):
        for name in ("client_contact_person", "contact_email", "equipment"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class ManagerSummary(APIModel):
    id: str
    name: str
    email: str


class ClientRead(ClientBase):
    id: str
    manager_id: str
    manager: Optional[ManagerSummary] = None
    is_active: bool
    equipment: List[EquipmentRead] = Field(default_factory=list)
    created_at: DateTimeType
    updated_at: DateTimeType

    # Stored values are returned as-is.
    contact_email: str


class ClientUpdateResponse(APIModel):
    message: str
    client: ClientRead


class AssignRequest(APIModel):
    new_manager_id: str


class ServiceActionRequest(APIModel):
    # Plain string: unknown actions get "Invalid action type", not a
    # generic validation error.
    action: Optional[str] = None


# ---------------- SOON EXPIRING ----------------


class SoonExpiringClient(APIModel):
    id: str
    company_name: Optional[str] = None
    manager_id: str
    equipment: List[EquipmentRead]
