"""create users, clients and client equipment tables

Revision ID: 3f9a2c1d7b4e
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f9a2c1d7b4e"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Enum("ADMIN", "SUPERVISOR", "MANAGER", name="user_role_enum"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)
    op.create_index("ix_users_is_active", "users", ["is_active"], unique=False)
    op.create_index("idx_users_role_active", "users", ["role", "is_active"], unique=False)

    op.create_table(
        "clients",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("manager_id", sa.String(length=36), nullable=False),
        sa.Column("client_contact_person", sa.String(length=100), nullable=False),
        sa.Column("company_name", sa.String(length=100), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=False),
        sa.Column("contact_phone", sa.String(length=16), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_clients_manager_id", "clients", ["manager_id"], unique=False)
    op.create_index("ix_clients_is_active", "clients", ["is_active"], unique=False)
    op.create_index("ix_clients_manager_active", "clients", ["manager_id", "is_active"], unique=False)

    op.create_table(
        "client_equipment",
        sa.Column("client_id", sa.String(length=36), nullable=False),
        sa.Column("key", sa.String(length=16), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("model", sa.String(length=255), nullable=True),
        sa.Column("serial", sa.String(length=255), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("service_status", sa.Enum("NONE", "NOTIFIED", "COMPLETED", name="service_status_enum"), nullable=False),
        sa.Column("last_service_notified", sa.DateTime(), nullable=True),
        sa.Column("service_due_date", sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("client_id", "key"),
    )
    op.create_index("ix_client_equipment_due", "client_equipment", ["service_due_date", "service_status"], unique=False)
    op.create_index("ix_client_equipment_notified", "client_equipment", ["last_service_notified"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_client_equipment_notified", table_name="client_equipment")
    op.drop_index("ix_client_equipment_due", table_name="client_equipment")
    op.drop_table("client_equipment")

    op.drop_index("ix_clients_manager_active", table_name="clients")
    op.drop_index("ix_clients_is_active", table_name="clients")
    op.drop_index("ix_clients_manager_id", table_name="clients")
    op.drop_table("clients")

    op.drop_index("idx_users_role_active", table_name="users")
    op.drop_index("ix_users_is_active", table_name="users")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    sa.Enum(name="service_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="user_role_enum").drop(op.get_bind(), checkfirst=True)
