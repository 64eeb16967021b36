"""
Configuration Loader (``backoffice_config.loader``).

Responsibility
--------------
Loads a YAML file and parses it into the typed dataclasses of
``backoffice_config.schema``.  Callers outside this package use
``backoffice_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Omitted keys take the schema default; unknown keys are rejected.
* ``compute_checksum`` is deterministic for identical input data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from backoffice_config.schema import (
    EngineConfig,
    LedgerAccounts,
    LedgerSettings,
    PayrollSettings,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _check_keys(section: str, data: dict[str, Any], cls: type) -> None:
    allowed = {f.name for f in fields(cls)}
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {sorted(unknown)}")


def _decimal(section: str, key: str, value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{section}.{key}: not a number: {value!r}") from exc


def parse_payroll_settings(data: dict[str, Any]) -> PayrollSettings:
    _check_keys("payroll", data, PayrollSettings)
    kwargs: dict[str, Any] = dict(data)
    if "tax_rate" in kwargs:
        kwargs["tax_rate"] = _decimal("payroll", "tax_rate", kwargs["tax_rate"])
    if "consultant_divisor" in kwargs:
        kwargs["consultant_divisor"] = int(kwargs["consultant_divisor"])
    if "flush_chunk_size" in kwargs:
        kwargs["flush_chunk_size"] = int(kwargs["flush_chunk_size"])
    if "active_project_statuses" in kwargs:
        kwargs["active_project_statuses"] = tuple(kwargs["active_project_statuses"])
    return PayrollSettings(**kwargs)


def parse_ledger_settings(data: dict[str, Any]) -> LedgerSettings:
    _check_keys("ledger", data, LedgerSettings)
    kwargs: dict[str, Any] = {}
    if "balance_tolerance" in data:
        kwargs["balance_tolerance"] = _decimal(
            "ledger", "balance_tolerance", data["balance_tolerance"]
        )
    accounts = data.get("accounts") or {}
    _check_keys("ledger.accounts", accounts, LedgerAccounts)
    kwargs["accounts"] = LedgerAccounts(**accounts)
    return LedgerSettings(**kwargs)


def parse_engine_config(data: dict[str, Any], source: str = "inline") -> EngineConfig:
    unknown = set(data) - {"payroll", "ledger"}
    if unknown:
        raise ValueError(f"Unknown top-level config sections: {sorted(unknown)}")
    return EngineConfig(
        payroll=parse_payroll_settings(data.get("payroll") or {}),
        ledger=parse_ledger_settings(data.get("ledger") or {}),
        checksum=compute_checksum(data),
        source=source,
    )


def load_config(path: Path | str) -> EngineConfig:
    path = Path(path)
    return parse_engine_config(load_yaml_file(path), source=str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
