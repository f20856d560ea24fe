from contextlib import contextmanager
import time
import uuid

from redis.exceptions import RedisError

from helpdesk.core.errors import PersistenceError
from helpdesk.settings import settings
from helpdesk.store.redis_conn import get_redis

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

@contextmanager
def session_lock(identity: str, ttl_ms: int = 0, attempts: int = 20, wait_sec: float = 0.25):
    """
    Distributed lock to ensure a single writer per conversation identity.
    Raises PersistenceError when the lock cannot be taken, so queued jobs retry.
    """
    ttl_ms = int(ttl_ms or settings.SESSION_LOCK_TTL_MS)
    key = f"lock:session:{identity}"
    token = uuid.uuid4().hex
    acquired = False
    try:
        r = get_redis()
        acquired = bool(r.set(key, token, px=ttl_ms, nx=True))
        for _ in range(attempts):
            if acquired:
                break
            time.sleep(wait_sec)
            acquired = bool(r.set(key, token, px=ttl_ms, nx=True))
    except RedisError as e:
        raise PersistenceError(f"lock unavailable for {identity}: {e}") from e

    if not acquired:
        raise PersistenceError(f"Could not acquire lock for session {identity}")

    try:
        yield
    finally:
        try:
            r.eval(_RELEASE_SCRIPT, 1, key, token)
        except RedisError:
            # Lock expires on its own
            pass
