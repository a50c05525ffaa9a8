"""Database infrastructure: declarative base, engine construction, immutability listeners."""

from inventory_kernel.db.base import Base, UTCDateTime, UUIDString
from inventory_kernel.db.engine import (
    build_engine,
    create_tables,
    drop_tables,
    session_scope,
)
from inventory_kernel.db.immutability import (
    posting_scope,
    register_immutability_listeners,
    unregister_immutability_listeners,
)

__all__ = [
    "Base",
    "UTCDateTime",
    "UUIDString",
    "build_engine",
    "create_tables",
    "drop_tables",
    "posting_scope",
    "register_immutability_listeners",
    "session_scope",
    "unregister_immutability_listeners",
]
