"""
yearend_engines.tracer -- YEAREND_ENGINE_TRACE records for pure engine calls.

``@traced_engine`` logs, at DEBUG, which engine ran, its version, how long it
took and a fingerprint of the inputs it was given.  Two calls with equal
inputs share a fingerprint, so a recomputed result can be matched to the run
that first produced it.

The fingerprint is the first 16 hex chars of a SHA-256 over canonical JSON
(sorted keys; dataclasses expanded; Decimal, UUID and dates as strings).
Unknown argument names hash as null.  Inputs are never mutated.

Usage::

    @traced_engine("reconciliation", "1.0", fingerprint_fields=("earnings",))
    def reconcile(earnings, declaration): ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable, Mapping
from typing import Any

from yearend_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_EVENT = "YEAREND_ENGINE_TRACE"


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    selected = {name: _plain(arguments.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[Callable], Callable]:
    def wrap(engine: Callable) -> Callable:
        signature = inspect.signature(engine)

        @functools.wraps(engine)
        def run(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                arguments = signature.bind(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, arguments)

            started = time.perf_counter()
            outcome = engine(*args, **kwargs)
            _logger.debug(
                TRACE_EVENT,
                extra={
                    "trace_type": TRACE_EVENT,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            return outcome

        return run

    return wrap
