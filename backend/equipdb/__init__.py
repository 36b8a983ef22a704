# backend/equipdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- The package exposes a clear surface.

The actual model classes are kept in equipdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models    # users / roles
from .apps.clients import models as clients_models      # clients + owned equipment

__all__ = [
    "accounts_models",
    "clients_models",
]
