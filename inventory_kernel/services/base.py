"""
Common base for write-side kernel services.

A service receives the caller's session and persists with ``flush()``.
It never commits: the PostingCoordinator (or the facade's session scope)
decides when a unit of work ends, which is what lets a multi-line posting
succeed or fail as a whole.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

M = TypeVar("M", bound=Base)


class BaseService(Generic[M]):
    """Holds the session; ``M`` names the model the service mainly writes."""

    def __init__(self, session: Session):
        self.session = session
