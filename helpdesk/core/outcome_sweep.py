"""
Outcome sweep: re-engage users 48h after their notice was generated.

Candidates come from the pending-outcome index; every candidate is
re-checked against the persisted session under its lock before anything
is sent, so the index may be stale without causing a wrong follow-up.
"""
from typing import Optional

from helpdesk.channel.twilio_sender import send_message
from helpdesk.core import prompts
from helpdesk.core import state_machine as sm
from helpdesk.observability import metrics
from helpdesk.observability.logging import log
from helpdesk.settings import settings
from helpdesk.speech import translator
from helpdesk.store.models import Session
from helpdesk.store.session_repo import (
    drop_from_outcome_index,
    load_session,
    pending_outcome_identities,
    save_session,
)
from helpdesk.utils.lock import session_lock
from helpdesk.utils.time import hours_ms, now_ms


def is_due(session: Session, cutoff_ms: int) -> bool:
    return (
        session.step == sm.COMPLETED
        and session.outcomeAsked is False
        and session.generatedAt is not None
        and int(session.generatedAt) <= int(cutoff_ms)
    )


def _follow_up(identity: str, cutoff_ms: int) -> str:
    """Returns "sent" or "skipped"; raises on send/store failure."""
    with session_lock(identity):
        session = load_session(identity)
        if not is_due(session, cutoff_ms):
            drop_from_outcome_index(identity)
            return "skipped"

        body = prompts.outcome_followup(session.collectedFacts.get("counterparty"))
        if settings.BILINGUAL_ENABLED:
            body = translator.to_user(body, session.languagePreference)
        send_message(identity, body)

        session.outcomeAsked = True
        session.step = sm.AWAITING_OUTCOME
        save_session(session)
        return "sent"


def run_outcome_sweep(now: Optional[int] = None) -> dict:
    cutoff = (now if now is not None else now_ms()) - hours_ms(settings.OUTCOME_WINDOW_HOURS)
    identities = pending_outcome_identities(cutoff, limit=settings.OUTCOME_SWEEP_BATCH)

    sent = skipped = failed = 0
    for identity in identities:
        try:
            result = _follow_up(identity, cutoff)
        except Exception as e:
            # One bad session must not block the rest
            failed += 1
            log(event="outcome_followup_failed", identity=identity, errorType=type(e).__name__, error=str(e)[:200])
            continue
        if result == "sent":
            sent += 1
            log(event="outcome_followup_sent", identity=identity)
        else:
            skipped += 1

    metrics.record_sweep(sent, failed)
    report = {"scanned": len(identities), "sent": sent, "skipped": skipped, "failed": failed}
    log(event="outcome_sweep_done", **report)
    return report
