"""
backoffice_engines.tracer -- ``ENGINE_TRACE`` records for engine calls.

``@traced_engine`` logs one record per call with the engine name and
version, a short fingerprint of the chosen arguments and the elapsed time.
Two calls with equal inputs produce the same fingerprint, so a trace can
be matched to a recomputation later.

    @traced_engine("rental", "1.0", fingerprint_fields=("start", "end", "monthly_rate"))
    def rental_cost(start, end, monthly_rate):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from backoffice_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_MESSAGE = "ENGINE_TRACE"
FINGERPRINT_LENGTH = 16

F = TypeVar("F", bound=Callable[..., Any])


def _stable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, date)):
        # Scale is kept: 5000.0 and 5000.00 fingerprint differently.
        return str(value)
    return repr(value)


def input_fingerprint(fields: tuple[str, ...], arguments: Mapping[str, Any]) -> str:
    """Hex digest prefix over ``fields`` taken from ``arguments`` (missing ones as null)."""
    selected = {name: arguments.get(name) for name in fields}
    canonical = json.dumps(selected, sort_keys=True, default=_stable, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind(*args, **kwargs)
                fingerprint = input_fingerprint(fingerprint_fields, bound.arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            logger.info(
                TRACE_MESSAGE,
                extra={
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 3),
                },
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
