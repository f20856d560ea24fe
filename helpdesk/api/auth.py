from fastapi import Header, HTTPException, Request

from helpdesk.api.normalize import parse_form
from helpdesk.channel.signature import is_valid_signature
from helpdesk.core.errors import ChannelAuthError
from helpdesk.observability.logging import log
from helpdesk.settings import settings


def signature_check_enabled() -> bool:
    """Signature validation can only be switched off outside production."""
    if settings.is_production:
        return True
    return not settings.SKIP_SIGNATURE_VALIDATION


def public_url(request: Request) -> str:
    # The channel signs the URL it called, which is the public one behind any proxy
    url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}{request.url.path}"
    if request.url.query:
        url += f"?{request.url.query}"
    return url


def verify_channel_signature(request: Request, raw_body: str) -> None:
    """Raise ChannelAuthError unless the webhook carries a valid signature."""
    if not signature_check_enabled():
        return
    signature = request.headers.get("x-twilio-signature", "")
    url = public_url(request)
    if not is_valid_signature(settings.TWILIO_AUTH_TOKEN, signature, url, parse_form(raw_body)):
        log(event="channel_signature_invalid", url=url, hasSignature=bool(signature))
        raise ChannelAuthError("invalid channel signature")


def require_cron_key(x_cron_key: str = Header(default="", alias="x-cron-key")):
    """
    Scheduler trigger guard.
    - If CRON_API_KEY is empty outside production: allow (local runs).
    - Otherwise the header must match.
    """
    if not settings.CRON_API_KEY:
        if settings.is_production:
            raise HTTPException(status_code=403, detail="Scheduler trigger disabled (no key configured)")
        return
    if x_cron_key != settings.CRON_API_KEY:
        raise HTTPException(status_code=401, detail="Invalid cron key")


def require_admin(x_admin_key: str = Header(default="", alias="x-admin-key")):
    # Secure default: no key configured means no admin access
    if not settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Admin access disabled (no key configured)")
    if x_admin_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Invalid admin key")
