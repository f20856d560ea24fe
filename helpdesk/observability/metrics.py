"""
Turn & Sweep Metrics
--------------------
Lightweight Redis counters plus a turn-latency sample list, read back by
/admin/metrics. Recording is best-effort: it runs after the reply decision
and a metrics failure never affects the turn.
"""
from __future__ import annotations
import time
from typing import List
from statistics import median

from redis.exceptions import RedisError

from helpdesk.observability.logging import log
from helpdesk.store.redis_conn import get_redis
from helpdesk.settings import settings

K_TURNS = "metrics:turns:processed"
K_TURN_FAIL = "metrics:turns:failed"
K_TURN_LAT = "metrics:turns:latencies"          # LPUSH ms
K_DRAFTS = "metrics:drafts:delivered"
K_INSUFFICIENT = "metrics:drafts:insufficient"
K_VOICE = "metrics:turns:voice"
K_SWEEP_SENT = "metrics:sweep:sent"
K_SWEEP_FAIL = "metrics:sweep:failed"

COUNTERS = {
    "turnsProcessed": K_TURNS,
    "turnsFailed": K_TURN_FAIL,
    "draftsDelivered": K_DRAFTS,
    "insufficientData": K_INSUFFICIENT,
    "voiceTurns": K_VOICE,
    "sweepSent": K_SWEEP_SENT,
    "sweepFailed": K_SWEEP_FAIL,
}

_MAX_SAMPLES = 500


def _percentile(data: List[float], p: float) -> float:
    """Deterministic percentile (nearest-rank on sorted data)."""
    if not data:
        return 0.0
    d = sorted(data)
    k = max(1, int(round(p * len(d))))
    return float(d[k - 1])


def _incr(key: str, by: int = 1) -> None:
    if not settings.METRICS_ENABLED:
        return
    try:
        get_redis().incr(key, by)
    except RedisError as e:
        log(event="metrics_write_failed", key=key, error=str(e)[:120])


def record_turn(latency_ms: int, *, drafted: bool = False, insufficient: bool = False, voice: bool = False) -> None:
    _incr(K_TURNS)
    if drafted:
        _incr(K_DRAFTS)
    if insufficient:
        _incr(K_INSUFFICIENT)
    if voice:
        _incr(K_VOICE)
    if not settings.METRICS_ENABLED:
        return
    try:
        r = get_redis()
        r.lpush(K_TURN_LAT, int(latency_ms))
        r.ltrim(K_TURN_LAT, 0, _MAX_SAMPLES - 1)
    except RedisError as e:
        log(event="metrics_write_failed", key=K_TURN_LAT, error=str(e)[:120])


def record_turn_failed() -> None:
    _incr(K_TURN_FAIL)


def record_sweep(sent: int, failed: int) -> None:
    if sent:
        _incr(K_SWEEP_SENT, sent)
    if failed:
        _incr(K_SWEEP_FAIL, failed)


def get_snapshot() -> dict:
    r = get_redis()
    out = {name: int(r.get(key) or 0) for name, key in COUNTERS.items()}
    lat = []
    for x in r.lrange(K_TURN_LAT, 0, _MAX_SAMPLES - 1) or []:
        try:
            lat.append(float(x))
        except (TypeError, ValueError):
            continue
    out["p50TurnLatencyMs"] = round(median(lat), 1) if lat else 0.0
    out["p95TurnLatencyMs"] = round(_percentile(lat, 0.95), 1)
    out["snapshotAt"] = int(time.time())
    return out
