"""
Identifier generation.

Services never call ``uuid4()`` themselves; they ask an injected
``IdGenerator``.  Production uses random UUIDs, tests use a sequential
generator so record ids are predictable and sortable.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from uuid import UUID, uuid4


class IdGenerator(ABC):
    """Source of primary keys for new ledger records."""

    @abstractmethod
    def new_id(self) -> UUID:
        ...


class UUIDGenerator(IdGenerator):
    """Random (version 4) UUIDs."""

    def new_id(self) -> UUID:
        return uuid4()


class SequentialIdGenerator(IdGenerator):
    """
    Deterministic ids: UUID(int=start), UUID(int=start + 1), ...

    Thread-safe, so concurrent test sessions never receive the same id.
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def new_id(self) -> UUID:
        with self._lock:
            return UUID(int=next(self._counter))
