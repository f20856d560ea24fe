from helpdesk.api.normalize import parse_inbound
from helpdesk.core.errors import ChannelAuthError
from helpdesk.core.outcome_sweep import run_outcome_sweep
from helpdesk.core.turn import run_turn
from helpdesk.observability.logging import log
from helpdesk.queue.signing import open_envelope
from helpdesk.settings import validate_runtime_config


def process_inbound_job(envelope: dict):
    """
    Background job for one inbound webhook event.
    Re-verifies the envelope, re-parses the raw body and runs the same turn
    function as the inline path. Exceptions propagate so RQ retries.
    """
    validate_runtime_config()

    try:
        raw_body = open_envelope(envelope)
    except ChannelAuthError as e:
        # Retrying a forged or corrupted envelope cannot succeed
        log(event="inbound_job_rejected", error=str(e)[:200])
        return {"status": "rejected"}

    msg = parse_inbound(raw_body)
    if msg is None:
        log(event="inbound_job_missing_sender")
        return {"status": "ignored"}

    log(event="inbound_job_start", identity=msg.senderId, messageId=msg.messageId or "")
    try:
        return run_turn(msg)
    except Exception as e:
        log(event="inbound_job_exception", identity=msg.senderId, errorType=type(e).__name__, error=str(e)[:300])
        raise


def run_outcome_sweep_job():
    """Scheduled entrypoint for the outcome sweep; takes no input."""
    validate_runtime_config()
    report = run_outcome_sweep()
    log(event="outcome_sweep_job_done", **report)
    return report
