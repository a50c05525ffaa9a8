"""
Configuration schema (``inventory_config.schema``).

Frozen dataclasses produced by the loader.  Nothing here reads files or
the environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def pool_options(self) -> dict[str, int]:
        return {
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
            "pool_recycle": self.pool_recycle,
        }


@dataclass(frozen=True)
class MovementTypeDef:
    key: str
    name: str
    factor: int


@dataclass(frozen=True)
class ApprovalSettings:
    default_signature_text: str = "Aprobado"
    approver_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class StockAlertSettings:
    """Defaults for the low-stock and expiring-lot read models."""

    low_stock_threshold: Decimal = Decimal("10")
    expiry_warning_days: int = 30


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class LedgerConfiguration:
    """
    Complete, validated ledger configuration.

    ``checksum`` is the SHA-256 of the canonical JSON form of the parsed
    YAML (before environment overrides), so two deployments can confirm
    they run the same configuration.
    """

    config_id: str
    version: int
    database: DatabaseSettings
    movement_types: tuple[MovementTypeDef, ...]
    approval: ApprovalSettings = field(default_factory=ApprovalSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    stock_alerts: StockAlertSettings = field(default_factory=StockAlertSettings)
    checksum: str = ""
    source_path: str | None = None
