from typing import List, Optional, Tuple
from urllib.parse import parse_qsl

from helpdesk.api.schemas import InboundMessage


def parse_form(raw_body: str) -> List[Tuple[str, str]]:
    return parse_qsl(raw_body or "", keep_blank_values=True)


def parse_inbound(raw_body: str) -> Optional[InboundMessage]:
    """
    Parse a form-encoded WhatsApp webhook body into an InboundMessage.

    Returns None when the sender is missing; such events cannot be
    attributed to a session and are acknowledged without processing.
    """
    form = dict(parse_form(raw_body))

    sender = (form.get("From") or "").strip()
    if not sender:
        return None

    try:
        num_media = int(form.get("NumMedia") or 0)
    except ValueError:
        num_media = 0

    media_url = form.get("MediaUrl0") or None
    return InboundMessage(
        senderId=sender,
        body=form.get("Body") or "",
        messageId=form.get("MessageSid") or form.get("SmsMessageSid") or None,
        numMedia=max(0, num_media),
        mediaUrl=media_url if num_media > 0 else None,
        mediaContentType=(form.get("MediaContentType0") or None) if num_media > 0 else None,
    )
