"""Primary key generation.

All tables use ULIDs rendered as 26-character strings: globally unique and
lexicographically sortable by creation time.
"""

from __future__ import annotations

from ulid import ULID

ID_LENGTH = 26


def new_id() -> str:
    """Return a fresh ULID string."""
    return str(ULID())
