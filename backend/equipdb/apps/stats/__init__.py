# backend/equipdb/apps/stats/__init__.py
"""
Stats app

Supervisor dashboard numbers and per-manager activity reports. Read-only:
nothing here writes to the database.
"""

from . import schemas, services  # noqa: F401

__all__ = ["schemas", "services"]
