# backend/equipdb/apps/accounts/models.py

from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Index,
    String,
)
from sqlalchemy.orm import relationship

from equipdb.database import Base
from equipdb.user_id import generate_user_id
from equipdb.utils.timeutils import utcnow


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class UserRole(str, enum.Enum):
    """Roles used across the portal.

    - ADMIN: user management and hard deletes.
    - SUPERVISOR: read / assign / report across all clients.
    - MANAGER: owns a subset of clients.
    """

    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    MANAGER = "manager"


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class User(Base):
    """
    Portal user account.

    Users are never deleted; `is_active=False` blocks login and API access.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_role_active", "role", "is_active"),
    )

    id = Column(
        String(36),
        primary_key=True,
        default=generate_user_id,
    )

    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)

    hashed_password = Column(String(255), nullable=False)

    role = Column(
        Enum(UserRole, name="user_role_enum"),
        nullable=False,
        default=UserRole.MANAGER,
        index=True,
    )

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(
        DateTime(),
        nullable=False,
        default=utcnow,
    )
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    clients = relationship(
        "Client",
        back_populates="manager",
        lazy="select",
    )

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value if self.role else None})>"
