# backend/equipdb/apps/clients/__init__.py
"""
Clients app

Responsible for:
- Client records and the equipment each client owns
- The access policy (role + ownership) for every client operation
- The equipment service lifecycle (notify / confirm)
"""

from . import lifecycle, models, policy, schemas, services  # noqa: F401

__all__ = ["lifecycle", "models", "policy", "schemas", "services"]
