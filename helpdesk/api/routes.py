from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from redis.exceptions import RedisError
from rq import Retry
from starlette.concurrency import run_in_threadpool

from helpdesk.api.auth import require_cron_key, verify_channel_signature
from helpdesk.api.normalize import parse_inbound
from helpdesk.api.schemas import InboundMessage, SweepResponse
from helpdesk.core.errors import ChannelAuthError, PersistenceError
from helpdesk.core.outcome_sweep import run_outcome_sweep
from helpdesk.core.turn import run_turn
from helpdesk.observability.logging import log
from helpdesk.queue.jobs import process_inbound_job
from helpdesk.queue.rq_conn import get_reachable_queue
from helpdesk.queue.signing import seal
from helpdesk.settings import settings
from helpdesk.store import artifact_cache

router = APIRouter()

# Empty TwiML: replies go out through the REST API, never in the webhook response
TWIML_ACK = "<Response></Response>"

_FILENAMES = {
    artifact_cache.PDF: "Legal_Notice.pdf",
    artifact_cache.WAV: "reply.wav",
}


def _ack() -> Response:
    return Response(content=TWIML_ACK, media_type="text/xml")


def _enqueue(raw_body: str, msg: InboundMessage) -> bool:
    q = get_reachable_queue()
    if q is None:
        return False
    try:
        job = q.enqueue(
            process_inbound_job,
            seal(raw_body),
            retry=Retry(max=settings.INBOUND_JOB_MAX_RETRIES, interval=[10, 30, 60]),
            job_timeout=settings.INBOUND_JOB_TIMEOUT_SEC,
        )
    except RedisError as e:
        log(event="inbound_enqueue_failed", identity=msg.senderId, error=str(e)[:200])
        return False
    log(event="inbound_enqueued", identity=msg.senderId, jobId=job.id, messageId=msg.messageId or "")
    return True


def _run_inline(msg: InboundMessage) -> None:
    try:
        run_turn(msg)
    except Exception as e:
        # The channel still gets its acknowledgement; diagnostics stay in logs
        log(event="inbound_inline_failed", identity=msg.senderId, errorType=type(e).__name__, error=str(e)[:300])


@router.post("/whatsapp")
async def whatsapp_webhook(request: Request):
    """Inbound channel webhook: verify, then queue or run the turn, then acknowledge."""
    raw_body = (await request.body()).decode("utf-8", errors="replace")

    try:
        verify_channel_signature(request, raw_body)
    except ChannelAuthError:
        return Response(content="Unauthorized", status_code=401)

    msg = parse_inbound(raw_body)
    if msg is None:
        log(event="inbound_missing_sender")
        return _ack()

    queued = await run_in_threadpool(_enqueue, raw_body, msg)
    if not queued:
        await run_in_threadpool(_run_inline, msg)
    return _ack()


@router.get("/artifact/{artifact_id}")
def get_artifact(artifact_id: str):
    """Serve a one-time artifact; it is gone after the first successful read."""
    try:
        art = artifact_cache.fetch_once(artifact_id)
    except PersistenceError as e:
        log(event="artifact_read_failed", artifactId=artifact_id, error=str(e)[:200])
        raise HTTPException(status_code=503, detail="Temporarily unavailable")
    if art is None:
        raise HTTPException(status_code=404, detail="Not found")

    log(event="artifact_served", artifactId=artifact_id, contentType=art.content_type, sizeBytes=len(art.data))
    filename = _FILENAMES.get(art.content_type, "artifact.bin")
    return Response(
        content=art.data,
        media_type=art.content_type,
        headers={
            "Content-Disposition": f'inline; filename="{filename}"',
            "Cache-Control": "no-cache, no-store",
        },
    )


@router.post("/cron/outcome-sweep", response_model=SweepResponse, dependencies=[Depends(require_cron_key)])
def outcome_sweep_trigger():
    """Periodic trigger; returns only a completion status and counts."""
    try:
        report = run_outcome_sweep()
    except PersistenceError as e:
        log(event="outcome_sweep_failed", error=str(e)[:200])
        return SweepResponse(status="error")
    return SweepResponse(status="ok", **report)
