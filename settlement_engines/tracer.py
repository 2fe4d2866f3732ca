"""
Trace decorator for the pure settlement engines.

``@traced_engine`` logs one ``SETTLEMENT_ENGINE_TRACE`` record at DEBUG per
call, carrying the engine name and version, the call duration and a short
fingerprint of the arguments named in ``fingerprint_fields``. The wrapped
function's arguments and result are left untouched.

The fingerprint is the first 16 hex characters of a SHA-256 over a
canonical JSON rendering of the named arguments, so the same command
history always yields the same sequence of fingerprints. Decimals are
normalized first, which makes ``10``, ``10.0`` and ``10.00`` equal.

    @traced_engine("advance", "1.0", fingerprint_fields=("seller", "buyer"))
    def total_advance(seller, buyer, prior_payments):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import json
import logging
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from settlement_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])

FINGERPRINT_LENGTH = 16


def _plain(value: Any) -> Any:
    """Reduce a value to JSON-native types with a stable ordering."""
    if isinstance(value, Enum):
        return _plain(value.value)
    if isinstance(value, Decimal):
        return str(value.normalize()) if value.is_finite() else str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            "__type__": type(value).__name__,
            **{f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)},
        }
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_plain(v) for v in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Fingerprint the named arguments; absent names hash as null."""
    payload = {name: _plain(arguments.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
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
                arguments = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "SETTLEMENT_ENGINE_TRACE",
                    extra={
                        "trace_type": "SETTLEMENT_ENGINE_TRACE",
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fingerprint,
                        "duration_ms": round(elapsed_ms, 2),
                        "function": func.__qualname__,
                    },
                )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
