from typing import Optional

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue

from helpdesk.observability.logging import log
from helpdesk.settings import settings


def get_queue() -> Queue:
    conn = Redis.from_url(settings.REDIS_URL)
    return Queue(settings.RQ_QUEUE_NAME, connection=conn)


def get_reachable_queue() -> Optional[Queue]:
    """The queue if dispatching to it is enabled and Redis answers, else None."""
    if settings.DISPATCH_MODE == "inline":
        return None
    try:
        q = get_queue()
        q.connection.ping()
        return q
    except RedisError as e:
        log(event="queue_unreachable", error=str(e)[:200])
        return None
