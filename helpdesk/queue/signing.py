import hashlib
import hmac

from helpdesk.api.schemas import QueueEnvelope
from helpdesk.core.errors import ChannelAuthError
from helpdesk.settings import settings
from helpdesk.utils.time import now_ms


def _sign(raw_body: str) -> str:
    key = (settings.QUEUE_SIGNING_SECRET or "").encode("utf-8")
    return hmac.new(key, raw_body.encode("utf-8"), hashlib.sha256).hexdigest()


def seal(raw_body: str) -> dict:
    """Wrap a verified webhook body for the queue."""
    return QueueEnvelope(rawBody=raw_body, signature=_sign(raw_body), enqueuedAtMs=now_ms()).model_dump()


def open_envelope(envelope: dict) -> str:
    """Verify an envelope independently of the gateway and return the raw body."""
    try:
        env = QueueEnvelope.model_validate(envelope)
    except ValueError as e:
        raise ChannelAuthError(f"malformed envelope: {e}") from e
    if not settings.QUEUE_SIGNING_SECRET and settings.is_production:
        raise ChannelAuthError("QUEUE_SIGNING_SECRET is not set")
    if not hmac.compare_digest(_sign(env.rawBody), env.signature):
        raise ChannelAuthError("envelope signature mismatch")
    return env.rawBody
