"""
Configuration loader (``inventory_config.loader``).

Responsibility
--------------
Read one YAML file and parse it into ``inventory_config.schema``
dataclasses.  Runtime callers go through
``inventory_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Required keys have no silent defaults: a missing ``database.url`` or an
  empty ``movement_types`` list is a ``ValueError``.
* Movement type keys are unique, factors are +1 or -1, and every key the
  kernel posts with is present.
* ``compute_checksum`` is deterministic for identical parsed content.

Failure modes
-------------
* Missing file -> ``FileNotFoundError``.
* Malformed YAML -> ``yaml.YAMLError``.
* Structural problems -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    ApprovalSettings,
    DatabaseSettings,
    LedgerConfiguration,
    LoggingSettings,
    MovementTypeDef,
    StockAlertSettings,
)
from inventory_kernel.domain.movement_types import VALID_FACTORS, MovementTypeKey

REQUIRED_MOVEMENT_TYPE_KEYS: frozenset[str] = frozenset(key.value for key in MovementTypeKey)


def load_yaml_file(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    url = data.get("url")
    if not url:
        raise ValueError("database.url is required")
    return DatabaseSettings(
        url=str(url),
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
        pool_recycle=int(data.get("pool_recycle", 1800)),
    )


def parse_movement_type(data: dict[str, Any]) -> MovementTypeDef:
    factor = int(data["factor"])
    if factor not in VALID_FACTORS:
        raise ValueError(
            f"movement type {data['key']!r}: factor must be one of "
            f"{sorted(VALID_FACTORS)}, got {factor}"
        )
    return MovementTypeDef(key=str(data["key"]), name=str(data["name"]), factor=factor)


def parse_movement_types(items: list[dict[str, Any]]) -> tuple[MovementTypeDef, ...]:
    if not items:
        raise ValueError("movement_types must declare at least one type")

    parsed = tuple(parse_movement_type(item) for item in items)
    keys = [definition.key for definition in parsed]
    duplicates = sorted({key for key in keys if keys.count(key) > 1})
    if duplicates:
        raise ValueError(f"duplicate movement type keys: {', '.join(duplicates)}")

    missing = sorted(REQUIRED_MOVEMENT_TYPE_KEYS - set(keys))
    if missing:
        raise ValueError(f"missing required movement types: {', '.join(missing)}")
    return parsed


def parse_approval(data: dict[str, Any]) -> ApprovalSettings:
    signature = str(data.get("default_signature_text", "Aprobado")).strip()
    if not signature:
        raise ValueError("approval.default_signature_text must not be blank")
    return ApprovalSettings(
        default_signature_text=signature,
        approver_ids=tuple(str(a) for a in data.get("approver_ids") or ()),
    )


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    return LoggingSettings(level=str(data.get("level", "INFO")).upper())


def parse_stock_alerts(data: dict[str, Any]) -> StockAlertSettings:
    raw = data.get("low_stock_threshold", "10")
    try:
        threshold = Decimal(str(raw))
    except InvalidOperation:
        raise ValueError(f"stock_alerts.low_stock_threshold must be a number, got {raw!r}") from None
    if not threshold.is_finite() or threshold < 0:
        raise ValueError(f"stock_alerts.low_stock_threshold must be >= 0, got {threshold}")
    days = int(data.get("expiry_warning_days", 30))
    if days < 0:
        raise ValueError(f"stock_alerts.expiry_warning_days must be >= 0, got {days}")
    return StockAlertSettings(low_stock_threshold=threshold, expiry_warning_days=days)


def parse_configuration(
    data: dict[str, Any],
    source_path: str | None = None,
) -> LedgerConfiguration:
    if "config_id" not in data:
        raise ValueError("config_id is required")
    return LedgerConfiguration(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        database=parse_database(data.get("database") or {}),
        movement_types=parse_movement_types(data.get("movement_types") or []),
        approval=parse_approval(data.get("approval") or {}),
        logging=parse_logging(data.get("logging") or {}),
        stock_alerts=parse_stock_alerts(data.get("stock_alerts") or {}),
        checksum=compute_checksum(data),
        source_path=source_path,
    )


def load_configuration(path: Path) -> LedgerConfiguration:
    return parse_configuration(load_yaml_file(path), source_path=str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
