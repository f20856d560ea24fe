"""
One-time artifact cache.

Binary blobs (notice PDFs, reply audio) are stored base64-encoded in a Redis
hash under a random id and deleted on the first successful read. A missing
id looks the same whether it never existed, was consumed or expired.
"""
from __future__ import annotations

import base64
import secrets
import time
from dataclasses import dataclass
from typing import Optional

from redis.exceptions import RedisError

from helpdesk.core.errors import PersistenceError
from helpdesk.observability.logging import log
from helpdesk.settings import settings
from helpdesk.store.redis_conn import get_redis

PREFIX = "artifact:"

PDF = "application/pdf"
WAV = "audio/wav"


@dataclass
class Artifact:
    artifact_id: str
    content_type: str
    created_at_ms: int
    data: bytes


def _key(artifact_id: str) -> str:
    return f"{PREFIX}{artifact_id}"


def put_artifact(data: bytes, content_type: str) -> str:
    """Store bytes and return the new opaque id."""
    artifact_id = secrets.token_urlsafe(18)
    mapping = {
        "contentType": content_type,
        "createdAt": str(int(time.time() * 1000)),
        "data": base64.b64encode(data).decode("ascii"),
    }
    try:
        r = get_redis()
        pipe = r.pipeline(transaction=True)
        pipe.hset(_key(artifact_id), mapping=mapping)
        pipe.expire(_key(artifact_id), int(settings.ARTIFACT_TTL_SEC))
        pipe.execute()
    except RedisError as e:
        raise PersistenceError(f"artifact write failed: {e}") from e
    log(event="artifact_stored", artifactId=artifact_id, contentType=content_type, sizeBytes=len(data))
    return artifact_id


def fetch_once(artifact_id: str) -> Optional[Artifact]:
    """Return the artifact and delete it. A failed delete does not fail the read."""
    if not artifact_id:
        return None
    try:
        r = get_redis()
        raw = r.hgetall(_key(artifact_id))
    except RedisError as e:
        raise PersistenceError(f"artifact read failed: {e}") from e
    if not raw or not raw.get("data"):
        return None

    try:
        data = base64.b64decode(raw["data"])
    except (ValueError, TypeError):
        log(event="artifact_corrupt", artifactId=artifact_id)
        return None

    try:
        r.delete(_key(artifact_id))
    except RedisError as e:
        log(event="artifact_delete_failed", artifactId=artifact_id, error=str(e)[:200])

    return Artifact(
        artifact_id=artifact_id,
        content_type=raw.get("contentType") or "application/octet-stream",
        created_at_ms=int(raw.get("createdAt") or 0),
        data=data,
    )


def artifact_url(artifact_id: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/artifact/{artifact_id}"
