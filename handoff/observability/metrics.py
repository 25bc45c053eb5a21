"""
Transfer Metrics Snapshot
-------------------------
Lightweight in-process counters/timers for a single client process. The CLI
prints get_snapshot() after a flow when asked for stats. Nothing here is
persisted; counters start at zero on every process start.
"""
from __future__ import annotations
import threading
import time
from typing import Dict, List, Tuple

_MAX_SAMPLES = 500  # cap to bound percentile computation cost

_lock = threading.Lock()
_counters: Dict[str, int] = {}
_upload_latencies_ms: List[int] = []

# Counter names
C_CREATE_ATT = "create_attempts"
C_POLLS = "polls_issued"
C_POLL_TIMEOUTS = "poll_timeouts"
C_BYTES_UP = "bytes_uploaded"
C_FLOW_OK = "flows_succeeded"
C_FLOW_FAIL = "flows_failed"


def _percentile(data: List[float], p: float) -> float:
    """Deterministic percentile (nearest-rank on sorted data)."""
    if not data:
        return 0.0
    d = sorted(data)
    k = max(1, int(round(p * len(d))))
    return float(d[k - 1])


def _incr(name: str, n: int = 1) -> None:
    with _lock:
        _counters[name] = _counters.get(name, 0) + int(n)


def increment_create_attempt() -> None:
    _incr(C_CREATE_ATT)

def increment_poll() -> None:
    _incr(C_POLLS)

def increment_poll_timeout() -> None:
    _incr(C_POLL_TIMEOUTS)

def add_bytes_uploaded(n: int) -> None:
    _incr(C_BYTES_UP, n)

def increment_flow_succeeded() -> None:
    _incr(C_FLOW_OK)

def increment_flow_failed() -> None:
    _incr(C_FLOW_FAIL)


def record_upload_latency(ms: int) -> None:
    try:
        ms = int(ms)
    except (TypeError, ValueError):
        return
    with _lock:
        _upload_latencies_ms.insert(0, ms)
        del _upload_latencies_ms[_MAX_SAMPLES:]


def _p50_p95(latencies_s: List[float]) -> Tuple[float, float]:
    if not latencies_s:
        return 0.0, 0.0
    return _percentile(latencies_s, 0.50), _percentile(latencies_s, 0.95)


def reset() -> None:
    with _lock:
        _counters.clear()
        _upload_latencies_ms.clear()


def get_snapshot() -> dict:
    """
    Return current counters plus upload latency percentiles (seconds).
    Fields:
      - create_attempts, polls_issued, poll_timeouts, bytes_uploaded
      - flows_succeeded, flows_failed
      - p50_upload_latency, p95_upload_latency
    """
    with _lock:
        counters = dict(_counters)
        lat_s = [v / 1000.0 for v in _upload_latencies_ms]

    p50, p95 = _p50_p95(lat_s)
    out = {name: int(counters.get(name, 0)) for name in (
        C_CREATE_ATT, C_POLLS, C_POLL_TIMEOUTS, C_BYTES_UP, C_FLOW_OK, C_FLOW_FAIL,
    )}
    out["p50_upload_latency"] = round(p50, 3)
    out["p95_upload_latency"] = round(p95, 3)
    out["snapshot_at"] = int(time.time())
    return out
