"""
Short, human-readable primary keys: 'USR-1F2A9C3D', 'CLI-8K2L0P9Q'.

Each generator is used as a SQLAlchemy column default, so it must be
callable with no arguments.
"""

import secrets
import string

_ALPHABET = string.ascii_uppercase + string.digits
_BLOCK_LENGTH = 8


def _prefixed(prefix: str) -> str:
    block = "".join(secrets.choice(_ALPHABET) for _ in range(_BLOCK_LENGTH))
    return f"{prefix}-{block}"


def generate_user_id() -> str:
    return _prefixed("USR")


def generate_client_id() -> str:
    return _prefixed("CLI")


def generate_equipment_key() -> str:
    # Unique within one client only; Client.add_equipment retries on a clash.
    return _prefixed("EQ")
