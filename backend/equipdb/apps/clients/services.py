# backend/equipdb/apps/clients/services.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from equipdb.apps.accounts import models as account_models
from equipdb.apps.accounts import services as account_services
from equipdb.utils.timeutils import as_naive_utc
from . import lifecycle, models, policy, schemas

logger = logging.getLogger(__name__)

# Fields PATCH /clients/{id} may write. Anything else in the body is ignored.
UPDATABLE_CLIENT_FIELDS = (
    "client_contact_person",
    "company_name",
    "contact_email",
    "contact_phone",
    "notes",
)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ManagerRequiredError(ValueError):
    """Supervisor created a client without naming its manager."""


class InvalidManagerError(ValueError):
    """The referenced user does not exist or is not a manager."""


class EquipmentNotFoundError(LookupError):
    pass


# ---------------------------------------------------------------------------
# Equipment helpers
# ---------------------------------------------------------------------------


def build_equipment(data: schemas.EquipmentIn) -> models.Equipment:
    """New equipment item with defaults applied (status none, due = purchase + 1y)."""
    return models.Equipment(
        model=data.model,
        serial=data.serial,
        purchase_date=data.purchase_date,
        service_status=data.service_status or models.ServiceStatus.NONE,
        last_service_notified=as_naive_utc(data.last_service_notified),
        service_due_date=lifecycle.default_due_date(
            data.purchase_date, data.service_due_date
        ),
    )


def _update_equipment(item: models.Equipment, data: schemas.EquipmentIn) -> None:
    sent = data.model_fields_set

    for field in ("model", "serial", "purchase_date", "service_due_date"):
        if field in sent:
            setattr(item, field, getattr(data, field))
    if "service_status" in sent:
        item.service_status = data.service_status or models.ServiceStatus.NONE
    if "last_service_notified" in sent:
        item.last_service_notified = as_naive_utc(data.last_service_notified)

    if item.service_due_date is None:
        item.service_due_date = lifecycle.default_due_date(item.purchase_date)


def replace_equipment(
    client: models.Client,
    items: Iterable[schemas.EquipmentIn],
) -> None:
    """
    Make the client's equipment match `items`, in order.

    Items carrying the id of an existing item update it in place and keep
    its service history; others are created; existing items not listed
    are removed.
    """
    existing = dict(client.equipment_items)
    kept: List[models.Equipment] = []
    kept_keys = set()
    new_items: List[models.Equipment] = []

    for data in items:
        current = existing.get(data.id) if data.id else None
        if current is not None and current.key not in kept_keys:
            _update_equipment(current, data)
            kept_keys.add(current.key)
            kept.append(current)
        else:
            item = build_equipment(data)
            new_items.append(item)
            kept.append(item)

    for key in list(client.equipment_items.keys()):
        if key not in kept_keys:
            del client.equipment_items[key]

    for item in new_items:
        client.add_equipment(item)

    for position, item in enumerate(kept):
        item.position = position


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_client(db: Session, client_id: str) -> Optional[models.Client]:
    return db.query(models.Client).filter(models.Client.id == client_id).first()


def list_clients(db: Session, user: account_models.User) -> List[models.Client]:
    """Supervisors see every client, managers only their own."""
    query = db.query(models.Client)
    manager_id = policy.manager_scope(user)
    if manager_id is not None:
        query = query.filter(models.Client.manager_id == manager_id)
    return query.order_by(models.Client.created_at.asc()).all()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def create_client(
    db: Session,
    *,
    actor: account_models.User,
    data: schemas.ClientCreate,
) -> models.Client:
    if actor.role == account_models.UserRole.MANAGER:
        manager_id = actor.id
    else:
        if not data.manager_id:
            raise ManagerRequiredError(
                "Manager ID is required when supervisor creates client"
            )
        if account_services.get_manager(db, data.manager_id) is None:
            raise InvalidManagerError("Manager ID must reference an existing manager")
        manager_id = data.manager_id

    client = models.Client(
        manager_id=manager_id,
        client_contact_person=data.client_contact_person,
        company_name=data.company_name,
        contact_email=str(data.contact_email),
        contact_phone=data.contact_phone,
        notes=data.notes,
        is_active=True,
    )
    for item in data.equipment:
        client.add_equipment(build_equipment(item))

    db.add(client)
    db.commit()
    db.refresh(client)
    logger.info(
        "Client created",
        extra={"client_id": client.id, "manager_id": manager_id, "actor_id": actor.id},
    )
    return client


def update_client(
    db: Session,
    client: models.Client,
    data: schemas.ClientUpdate,
) -> models.Client:
    sent = data.model_dump(exclude_unset=True)

    for field in UPDATABLE_CLIENT_FIELDS:
        if field in sent:
            value = sent[field]
            setattr(client, field, str(value) if field == "contact_email" else value)

    if data.equipment is not None:
        replace_equipment(client, data.equipment)

    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def hard_delete_client(db: Session, client_id: str) -> bool:
    client = get_client(db, client_id)
    if client is None:
        return False
    db.delete(client)
    db.commit()
    logger.info("Client deleted", extra={"client_id": client_id})
    return True


def soft_delete_client(db: Session, client_id: str) -> Optional[models.Client]:
    client = get_client(db, client_id)
    if client is None:
        return None
    client.is_active = False
    db.add(client)
    db.commit()
    db.refresh(client)
    logger.info("Client marked inactive", extra={"client_id": client_id})
    return client


def reassign_client(
    db: Session,
    client_id: str,
    new_manager_id: str,
) -> Optional[models.Client]:
    """
    Move a client to another manager. The target is checked first, so a
    bad target is reported even when the client does not exist.
    """
    manager = account_services.get_manager(db, new_manager_id)
    if manager is None:
        raise InvalidManagerError("Target user is not a manager")

    client = get_client(db, client_id)
    if client is None:
        return None

    previous = client.manager_id
    client.manager_id = manager.id
    client.manager = manager
    db.add(client)
    db.commit()
    db.refresh(client)
    logger.info(
        "Client reassigned",
        extra={"client_id": client.id, "from_manager_id": previous, "to_manager_id": manager.id},
    )
    return client


def perform_service_action(
    db: Session,
    client: models.Client,
    equipment_key: str,
    action: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> models.Equipment:
    item = client.get_equipment(equipment_key)
    if item is None:
        raise EquipmentNotFoundError(equipment_key)

    lifecycle.apply_service_action(item, action, now=now)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(
        "Service action applied",
        extra={
            "client_id": client.id,
            "equipment_key": item.key,
            "action": action,
            "service_status": item.service_status.value,
        },
    )
    return item
