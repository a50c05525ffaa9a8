"""
Movement type keys and factors.

A movement type gives a stored (always positive) quantity its sign.  Each
posting intent resolves its type through a stable semantic key; two types
may share a factor, so the factor alone never identifies a type.
"""

from dataclasses import dataclass
from enum import Enum

ENTRY_FACTOR = 1
EXIT_FACTOR = -1
VALID_FACTORS: frozenset[int] = frozenset({ENTRY_FACTOR, EXIT_FACTOR})


class MovementTypeKey(str, Enum):
    """Semantic keys for the movement types the kernel posts."""

    DONATION_ENTRY = "donation_entry"
    SALE_EXIT = "sale_exit"
    KITCHEN_CONSUMPTION_EXIT = "kitchen_consumption_exit"
    ADJUSTMENT_ENTRY = "adjustment_entry"
    ADJUSTMENT_EXIT = "adjustment_exit"


class AdjustmentDirection(str, Enum):
    """Direction of a compensating movement."""

    ENTRY = "entry"
    EXIT = "exit"

    @property
    def movement_type_key(self) -> MovementTypeKey:
        if self is AdjustmentDirection.ENTRY:
            return MovementTypeKey.ADJUSTMENT_ENTRY
        return MovementTypeKey.ADJUSTMENT_EXIT


@dataclass(frozen=True)
class MovementTypeDefinition:
    """A movement type as declared in configuration."""

    key: str
    name: str
    factor: int

    def __post_init__(self) -> None:
        if self.factor not in VALID_FACTORS:
            raise ValueError(
                f"Movement type {self.key} has factor {self.factor}; "
                f"expected one of {sorted(VALID_FACTORS)}"
            )


# Fallback definitions, used when no configuration is supplied.
DEFAULT_MOVEMENT_TYPES: tuple[MovementTypeDefinition, ...] = (
    MovementTypeDefinition(MovementTypeKey.DONATION_ENTRY.value, "Entrada Donativo", ENTRY_FACTOR),
    MovementTypeDefinition(MovementTypeKey.SALE_EXIT.value, "Salida por Venta", EXIT_FACTOR),
    MovementTypeDefinition(
        MovementTypeKey.KITCHEN_CONSUMPTION_EXIT.value, "Salida por Consumo Cocina", EXIT_FACTOR
    ),
    MovementTypeDefinition(MovementTypeKey.ADJUSTMENT_ENTRY.value, "Ajuste de Entrada", ENTRY_FACTOR),
    MovementTypeDefinition(MovementTypeKey.ADJUSTMENT_EXIT.value, "Ajuste de Salida", EXIT_FACTOR),
)
