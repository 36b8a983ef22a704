# backend/equipdb/apps/clients/models.py

from __future__ import annotations

import enum
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import attribute_keyed_dict, relationship

from equipdb.database import Base
from equipdb.user_id import generate_client_id, generate_equipment_key
from equipdb.utils.timeutils import utcnow


class ServiceStatus(str, enum.Enum):
    NONE = "none"
    NOTIFIED = "notified"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# CLIENT
# ---------------------------------------------------------------------------


class Client(Base):
    """
    A customer company / contact record.

    Exactly one owning manager at all times. Equipment belongs to the
    client and is only reachable through it.
    """

    __tablename__ = "clients"
    __table_args__ = (
        Index("ix_clients_manager_active", "manager_id", "is_active"),
    )

    id = Column(String(36), primary_key=True, default=generate_client_id)

    manager_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    client_contact_person = Column(String(100), nullable=False)
    company_name = Column(String(100), nullable=True)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(16), nullable=True)   # E.164: max 15 digits + '+'
    notes = Column(String(500), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(), nullable=False, default=utcnow)
    updated_at = Column(DateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    manager = relationship("User", back_populates="clients", lazy="joined")

    # Keyed by Equipment.key so lookups never scan the list.
    equipment_items = relationship(
        "Equipment",
        back_populates="client",
        collection_class=attribute_keyed_dict("key"),
        order_by="Equipment.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def equipment(self) -> List["Equipment"]:
        return list(self.equipment_items.values())

    def get_equipment(self, key: str) -> Optional["Equipment"]:
        return self.equipment_items.get(key)

    def add_equipment(self, item: "Equipment") -> "Equipment":
        if not item.key:
            item.key = generate_equipment_key()
        while item.key in self.equipment_items:
            item.key = generate_equipment_key()
        item.position = len(self.equipment_items)
        self.equipment_items[item.key] = item
        return item

    def __repr__(self) -> str:
        return f"<Client {self.id} manager={self.manager_id}>"


# ---------------------------------------------------------------------------
# EQUIPMENT
# ---------------------------------------------------------------------------


class Equipment(Base):
    """
    A serviceable asset owned by a client.

    `key` is unique within the client only; the primary key is
    (client_id, key).
    """

    __tablename__ = "client_equipment"
    __table_args__ = (
        Index("ix_client_equipment_due", "service_due_date", "service_status"),
        Index("ix_client_equipment_notified", "last_service_notified"),
    )

    client_id = Column(
        String(36),
        ForeignKey("clients.id", ondelete="CASCADE"),
        primary_key=True,
    )
    key = Column(String(16), primary_key=True, default=generate_equipment_key)
    position = Column(Integer, nullable=False, default=0)

    model = Column(String(255), nullable=True)
    serial = Column(String(255), nullable=True)
    purchase_date = Column(Date, nullable=True)

    service_status = Column(
        Enum(ServiceStatus, name="service_status_enum"),
        nullable=False,
        default=ServiceStatus.NONE,
    )
    last_service_notified = Column(DateTime(), nullable=True)
    service_due_date = Column(Date, nullable=True)

    client = relationship("Client", back_populates="equipment_items")

    @property
    def id(self) -> str:
        # The API exposes the per-client key as the equipment id.
        return self.key

    def __repr__(self) -> str:
        return f"<Equipment {self.client_id}/{self.key} {self.service_status.value if self.service_status else None}>"
