"""
backoffice_config -- single public entrypoint for engine configuration.

Responsibility:
    ``get_active_config()`` returns the typed, frozen ``EngineConfig``.
    The packaged ``defaults.yaml`` is used unless the ``BACKOFFICE_CONFIG``
    environment variable names another YAML file.

Architecture position:
    Configuration -- sits above ``backoffice_kernel`` and below
    ``backoffice_modules``.  The kernel never imports from here.

Audit relevance:
    Every load emits a ``CONFIG_TRACE`` log entry carrying the source and
    checksum, so a run can be tied back to the exact configuration used.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from backoffice_config.loader import compute_checksum, load_config, parse_engine_config
from backoffice_config.schema import (
    EngineConfig,
    LedgerAccounts,
    LedgerSettings,
    PayrollSettings,
)

_logger = logging.getLogger("backoffice.config")

CONFIG_ENV_VAR = "BACKOFFICE_CONFIG"
DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> EngineConfig:
    """
    Load the active configuration.

    Resolution order: explicit ``path``, then ``$BACKOFFICE_CONFIG``, then
    the packaged defaults.
    """
    chosen = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULTS_PATH
    config = load_config(chosen)
    _logger.info(
        "CONFIG_TRACE",
        extra={
            "trace_type": "CONFIG_TRACE",
            "source": config.source,
            "checksum": config.checksum,
        },
    )
    return config


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULTS_PATH",
    "EngineConfig",
    "LedgerAccounts",
    "LedgerSettings",
    "PayrollSettings",
    "compute_checksum",
    "get_active_config",
    "load_config",
    "parse_engine_config",
]
