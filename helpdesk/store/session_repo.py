import json
import time
import inspect
from typing import List

from redis.exceptions import RedisError

from helpdesk.core import state_machine as sm
from helpdesk.core.errors import PersistenceError
from helpdesk.store.redis_conn import get_redis
from helpdesk.store.models import Session
from helpdesk.observability.logging import log

PREFIX = "session:"
# Sorted set of identities with a delivered draft and no follow-up yet (score = generatedAt ms)
PENDING_OUTCOME_KEY = "sessions:pending_outcome"

# Records written by the first flow controller used lower-case step names
# and a nested "data" object with different slot keys.
_LEGACY_STEPS = {
    "start": sm.START,
    "choose_issue": sm.COLLECT_ISSUE,
    "company_name": sm.COLLECT_COUNTERPARTY,
    "amount": sm.COLLECT_AMOUNT,
    "order_date": sm.COLLECT_DATE,
    "confirm": sm.CONFIRM,
    "completed": sm.COMPLETED,
    "awaiting_outcome": sm.AWAITING_OUTCOME,
}
_LEGACY_FACT_KEYS = {
    "issueType": "issue",
    "company": "counterparty",
    "amount": "amount",
    "orderDate": "incidentDate",
}


def _migrate_session_data(data: dict) -> dict:
    """Map legacy records onto the current Session schema."""
    migrated = False

    step = data.get("step")
    if step in _LEGACY_STEPS:
        data["step"] = _LEGACY_STEPS[step]
        migrated = True

    legacy_data = data.pop("data", None)
    if isinstance(legacy_data, dict) and not data.get("collectedFacts"):
        data["collectedFacts"] = {
            _LEGACY_FACT_KEYS[k]: str(v) for k, v in legacy_data.items() if k in _LEGACY_FACT_KEYS and v
        }
        migrated = True

    if migrated:
        log(event="session_migrated", identity=data.get("identity", ""), step=data.get("step"))
    return data


def _key(identity: str) -> str:
    return f"{PREFIX}{identity}"


def _filter_session_kwargs(data: dict) -> dict:
    """
    Drop unknown fields so Session(**kwargs) never explodes
    """
    sig = inspect.signature(Session)
    allowed = set(sig.parameters.keys())
    return {k: v for k, v in data.items() if k in allowed}


def _awaits_outcome(session: Session) -> bool:
    return session.step == sm.COMPLETED and not session.outcomeAsked and session.generatedAt is not None


def load_session(identity: str) -> Session:
    try:
        r = get_redis()
        raw = r.get(_key(identity))
    except RedisError as e:
        raise PersistenceError(f"session load failed: {e}") from e

    if not raw:
        s = Session(identity=identity)
        s.updatedAtEpoch = int(time.time())
        return s

    data = json.loads(raw)
    data = _migrate_session_data(data)
    data = _filter_session_kwargs(data)
    data["identity"] = identity
    return Session(**data)


def save_session(session: Session) -> None:
    """Persist step, facts and the sweep index entry in one transaction."""
    session.updatedAtEpoch = int(time.time())
    data = dict(session.__dict__)
    try:
        r = get_redis()
        pipe = r.pipeline(transaction=True)
        pipe.set(_key(session.identity), json.dumps(data))
        if _awaits_outcome(session):
            pipe.zadd(PENDING_OUTCOME_KEY, {session.identity: int(session.generatedAt)})
        else:
            pipe.zrem(PENDING_OUTCOME_KEY, session.identity)
        pipe.execute()
    except RedisError as e:
        raise PersistenceError(f"session save failed: {e}") from e


def pending_outcome_identities(cutoff_ms: int, limit: int = 200) -> List[str]:
    """Identities whose draft was generated at or before cutoff_ms."""
    try:
        r = get_redis()
        return list(r.zrangebyscore(PENDING_OUTCOME_KEY, "-inf", int(cutoff_ms), start=0, num=int(limit)))
    except RedisError as e:
        raise PersistenceError(f"outcome index read failed: {e}") from e


def drop_from_outcome_index(identity: str) -> None:
    try:
        get_redis().zrem(PENDING_OUTCOME_KEY, identity)
    except RedisError as e:
        log(event="outcome_index_drop_failed", identity=identity, error=str(e)[:200])
