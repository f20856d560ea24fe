import json
import time
from helpdesk.settings import settings

# Conversation text and anything derived from it never reaches logs verbatim
SENSITIVE_KEYS = {"body", "text", "reply", "transcript", "facts", "payload", "content"}


def _mask(v):
    if isinstance(v, str):
        return f"[REDACTED:{len(v)}chars]" if v else v
    if isinstance(v, dict):
        return {k: _mask(val) for k, val in v.items()}
    if isinstance(v, (list, tuple)):
        return [_mask(x) for x in v]
    return v


def _scrub(fields: dict) -> dict:
    out = {}
    for k, v in fields.items():
        if k in SENSITIVE_KEYS:
            out[k] = _mask(v)
        elif isinstance(v, dict):
            out[k] = _scrub(v)
        else:
            out[k] = v
    return out


def log(event: str, **fields):
    payload = {"ts": int(time.time()), "event": event}
    payload.update(_scrub(fields) if settings.ENABLE_PII_REDACTION else fields)
    print(json.dumps(payload, ensure_ascii=False, default=str))
