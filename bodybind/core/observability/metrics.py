from __future__ import annotations

from collections import Counter
from typing import Dict, Optional

from prometheus_client import Counter as PromCounter

# Requests counters (HTTP-level)
_REQUESTS = Counter()

# Named counters (custom)
_NAMED = Counter()

BIND_TOTAL = PromCounter(
    "bodybind_bind_total",
    "Body bind operations by media type and outcome",
    ["media_type", "outcome"],
)

FIELD_INDEX_BUILDS_TOTAL = PromCounter(
    "bodybind_field_index_builds_total",
    "Field index builds (one per distinct record shape)",
)


def reset_metrics() -> None:
    """
    Test helper: clears all in-memory counters to avoid cross-test leakage.
    Prometheus counters are process-global and are not reset.
    """
    _REQUESTS.clear()
    _NAMED.clear()


def inc_http(method: str, path: str, status: Optional[int] = None) -> None:
    """
    Canonical HTTP metric increment used by middleware.
    """
    m = (method or "UNKNOWN").upper()
    p = path or "/"
    s = status if status is not None else "unknown"

    _REQUESTS["requests_total"] += 1
    _REQUESTS[f"requests_{m}"] += 1
    _REQUESTS[f"path_{p}|{s}"] += 1


def inc_named(name: str, value: int = 1) -> None:
    """
    Increment a named counter (used by health endpoints, the binder, etc.).
    """
    if not name:
        return
    _NAMED[name] += int(value)


def record_bind(media_type: str, outcome: str) -> None:
    BIND_TOTAL.labels(media_type=media_type or "none", outcome=outcome).inc()
    inc_named(f"bind_{outcome}")


def snapshot_requests() -> Dict[str, int]:
    return dict(_REQUESTS)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
