"""
inventory_config -- single public entrypoint for ledger configuration.

Responsibility:
    ``get_active_config()`` is the ONLY way runtime code obtains
    configuration.  No other component reads configuration files or
    environment variables.

Architecture position:
    Configuration layer.  Sits above ``inventory_kernel`` and below
    ``inventory_services``.  The kernel MUST NEVER import from here;
    ``movement_type_definitions()`` translates configuration into kernel
    inputs.

Environment:
    INVENTORY_LEDGER_CONFIG   path of the YAML file to load
                              (default: inventory_config/sets/default.yaml)
    INVENTORY_DATABASE_URL    overrides ``database.url``

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``ValueError`` -- structural validation failures.

Every successful call logs ``inventory_config_loaded`` with the config id,
version and checksum.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from inventory_config.loader import load_configuration
from inventory_config.schema import (
    ApprovalSettings,
    DatabaseSettings,
    LedgerConfiguration,
    LoggingSettings,
    MovementTypeDef,
    StockAlertSettings,
)
from inventory_kernel.domain.movement_types import MovementTypeDefinition
from inventory_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_PATH_ENV = "INVENTORY_LEDGER_CONFIG"
DATABASE_URL_ENV = "INVENTORY_DATABASE_URL"

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "ApprovalSettings",
    "DatabaseSettings",
    "LedgerConfiguration",
    "LoggingSettings",
    "MovementTypeDef",
    "StockAlertSettings",
    "get_active_config",
    "movement_type_definitions",
]


def get_active_config(path: Path | str | None = None) -> LedgerConfiguration:
    """
    The ONLY public configuration entrypoint.

    Resolution order for the file: explicit ``path``, then
    ``INVENTORY_LEDGER_CONFIG``, then the packaged default.  The database
    URL may be overridden by ``INVENTORY_DATABASE_URL``; the checksum always
    describes the file content.
    """
    selected = path or os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH
    config_path = Path(selected)
    if not config_path.is_file():
        raise FileNotFoundError(f"Inventory ledger configuration not found: {config_path}")

    config = load_configuration(config_path)

    url_override = os.environ.get(DATABASE_URL_ENV)
    if url_override:
        config = replace(config, database=replace(config.database, url=url_override))

    _logger.info(
        "inventory_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source_path": config.source_path,
            "movement_type_count": len(config.movement_types),
            "database_url_overridden": bool(url_override),
        },
    )
    return config


def movement_type_definitions(config: LedgerConfiguration) -> tuple[MovementTypeDefinition, ...]:
    """Translate configured movement types into kernel definitions."""
    return tuple(
        MovementTypeDefinition(key=mt.key, name=mt.name, factor=mt.factor)
        for mt in config.movement_types
    )
