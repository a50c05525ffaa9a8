"""
Named monotonic counters.

The ledger orders movements that share a timestamp by ``seq``, drawn from
the ``inventory_movement`` counter.  Each counter is one row in
``sequence_counters`` that is locked and incremented inside the caller's
transaction, so:

* concurrent postings serialize on the row and never receive the same value;
* a rolled-back posting releases its number together with everything else.

``SELECT max(seq) + 1`` is deliberately absent; it hands out duplicates
under READ COMMITTED.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.sequence_counter import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:

    MOVEMENT = "inventory_movement"
    KNOWN_SEQUENCES: tuple[str, ...] = (MOVEMENT,)

    def __init__(self, session: Session):
        self._session = session

    def _select(self, name: str, lock: bool) -> SequenceCounter | None:
        stmt = select(SequenceCounter).where(SequenceCounter.name == name)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self._session.execute(stmt).scalar_one_or_none()

    def _create_counter(self, name: str) -> SequenceCounter | None:
        """
        Insert a counter row at zero inside a savepoint.

        Returns None when another transaction created it first; the caller
        then locks the winner's row.
        """
        savepoint = self._session.begin_nested()
        counter = SequenceCounter(name=name, current_value=0)
        self._session.add(counter)
        try:
            self._session.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
            return None
        savepoint.commit()
        return counter

    def next_value(self, sequence_name: str) -> int:
        """Lock (or create) the counter, bump it, and return the new value (>= 1)."""
        counter = self._select(sequence_name, lock=True)
        if counter is None:
            counter = self._create_counter(sequence_name) or self._select(sequence_name, lock=True)
        if counter is None:
            raise RuntimeError(f"sequence counter {sequence_name!r} could not be created")

        counter.current_value += 1
        self._session.flush()

        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Last value handed out, or None if the counter does not exist yet."""
        counter = self._select(sequence_name, lock=False)
        return None if counter is None else counter.current_value

    def initialize_sequences(self) -> None:
        for name in self.KNOWN_SEQUENCES:
            if self._select(name, lock=False) is None:
                self._session.add(SequenceCounter(name=name, current_value=0))
        self._session.flush()
