"""
Outbound WhatsApp delivery through the Twilio Messages REST API.
"""
from __future__ import annotations

import time
from typing import Optional

import httpx

from helpdesk.core.errors import TransientProviderError
from helpdesk.observability.logging import log
from helpdesk.settings import settings

# WhatsApp caps a single message body at 1600 characters
MAX_BODY_CHARS = 1600


def _split_body(body: str) -> list[str]:
    if len(body) <= MAX_BODY_CHARS:
        return [body]
    parts, current = [], ""
    for para in body.split("\n\n"):
        candidate = f"{current}\n\n{para}" if current else para
        if len(candidate) <= MAX_BODY_CHARS:
            current = candidate
            continue
        if current:
            parts.append(current)
        while len(para) > MAX_BODY_CHARS:
            parts.append(para[:MAX_BODY_CHARS])
            para = para[MAX_BODY_CHARS:]
        current = para
    if current:
        parts.append(current)
    return parts


def _post_message(to: str, body: str, media_url: Optional[str]) -> str:
    url = f"{settings.TWILIO_API_BASE}/Accounts/{settings.TWILIO_ACCOUNT_SID}/Messages.json"
    data = {"To": to, "From": settings.TWILIO_WHATSAPP_NUMBER, "Body": body}
    if media_url:
        data["MediaUrl"] = media_url

    start = time.time()
    try:
        with httpx.Client(timeout=settings.SEND_TIMEOUT_SEC) as client:
            resp = client.post(url, data=data, auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN))
    except httpx.HTTPError as e:
        log(event="send_exception", to=to, errorType=type(e).__name__, error=str(e)[:200])
        raise TransientProviderError("channel", f"{type(e).__name__}: {e}") from e

    elapsed_ms = int((time.time() - start) * 1000)
    if 200 <= resp.status_code < 300:
        sid = ""
        try:
            sid = str(resp.json().get("sid") or "")
        except ValueError:
            pass
        log(event="send_success", to=to, sid=sid, hasMedia=bool(media_url), elapsedMs=elapsed_ms)
        return sid

    log(event="send_failed", to=to, statusCode=int(resp.status_code), elapsedMs=elapsed_ms,
        responseText=(resp.text or "")[:300])
    raise TransientProviderError("channel", f"send failed: {resp.status_code}")


def send_message(to: str, body: str, media_url: Optional[str] = None) -> list[str]:
    """Deliver a reply. Long bodies are split; media rides on the first part."""
    if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_WHATSAPP_NUMBER):
        raise TransientProviderError("channel", "Twilio credentials are not configured")
    sids = []
    for i, part in enumerate(_split_body(body or "")):
        sids.append(_post_message(to, part, media_url if i == 0 else None))
    return sids
