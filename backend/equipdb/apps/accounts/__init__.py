# backend/equipdb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- User accounts and their role (admin / supervisor / manager)
- Public auth endpoint (login)
- User endpoints (admin listing, role change, own profile)

Other apps (clients, stats) depend on these models for anything related
to "who is allowed to do what".
"""

from . import models, schemas, services  # noqa: F401

__all__ = ["models", "schemas", "services"]
