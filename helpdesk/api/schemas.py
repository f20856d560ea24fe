from typing import Literal, Optional
from pydantic import BaseModel


class InboundMessage(BaseModel):
    """Minimal fields of one inbound channel event."""
    senderId: str
    body: str = ""
    messageId: Optional[str] = None
    numMedia: int = 0
    mediaUrl: Optional[str] = None
    mediaContentType: Optional[str] = None


class QueueEnvelope(BaseModel):
    """Raw webhook body as placed on the background queue."""
    rawBody: str
    signature: str
    enqueuedAtMs: int


class SweepResponse(BaseModel):
    status: Literal["ok", "error"] = "ok"
    scanned: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
