"""
The single turn function behind both dispatch paths.

The inline webhook path and the background worker both call run_turn();
there is no other code path that advances a conversation.
"""
import time
from typing import Optional, Tuple

from helpdesk.api.schemas import InboundMessage
from helpdesk.channel.twilio_sender import send_message
from helpdesk.core import prompts
from helpdesk.core.engine import Capabilities, TurnOutcome, advance
from helpdesk.core.errors import PersistenceError, TransientProviderError
from helpdesk.observability import metrics
from helpdesk.observability.logging import log
from helpdesk.settings import settings
from helpdesk.speech import translator
from helpdesk.speech.synthesizer import should_mirror, synthesize_reply
from helpdesk.speech.transcriber import is_audio, transcribe
from helpdesk.store.models import Session
from helpdesk.store.session_repo import load_session, save_session
from helpdesk.utils.lock import session_lock


def _resolve_input(msg: InboundMessage, caps: Capabilities) -> Tuple[str, bool, Optional[str]]:
    """Return (text, voice, fallback_reply). A fallback reply ends the turn without a state change."""
    if msg.numMedia > 0 and msg.mediaUrl and is_audio(msg.mediaContentType):
        if not caps.voice:
            if msg.body.strip():
                return msg.body, False, None
            return "", False, prompts.VOICE_DISABLED
        try:
            return transcribe(msg.mediaUrl, msg.mediaContentType or "audio/ogg"), True, None
        except TransientProviderError as e:
            log(event="voice_transcription_failed", identity=msg.senderId, error=str(e)[:200])
            return "", True, prompts.VOICE_NOT_UNDERSTOOD
    return msg.body, False, None


def _mark_processed(session: Session, message_id: Optional[str]) -> None:
    if not message_id:
        return
    ids = [m for m in session.processedMessageIds if m != message_id]
    ids.append(message_id)
    session.processedMessageIds = ids[-int(settings.PROCESSED_IDS_WINDOW):]


def _safe_send(to: str, body: str, media_url: Optional[str] = None) -> bool:
    try:
        send_message(to, body, media_url=media_url)
        return True
    except TransientProviderError as e:
        # State is already persisted; a lost reply costs the user one re-prompt
        log(event="reply_send_failed", identity=to, hasMedia=bool(media_url), error=str(e)[:200])
        metrics.record_turn_failed()
        return False


def _deliver(identity: str, outcome: TurnOutcome, voice: bool) -> None:
    media_url = outcome.side_effects[0].media_url if outcome.side_effects else None
    _safe_send(identity, outcome.reply, media_url=media_url)

    if should_mirror(outcome.reply, voice):
        audio_url = synthesize_reply(outcome.reply, outcome.session.languagePreference)
        if audio_url:
            _safe_send(identity, "", media_url=audio_url)


def run_turn(msg: InboundMessage, caps: Optional[Capabilities] = None) -> dict:
    """Process one inbound event end to end.

    Raises PersistenceError when the session store is unavailable. At most
    the drafting progress notice has been sent then, so the queue can retry.
    """
    start = time.time()
    caps = caps or Capabilities.from_settings()
    identity = msg.senderId

    with session_lock(identity):
        session = load_session(identity)

        if msg.messageId and msg.messageId in session.processedMessageIds:
            log(event="turn_duplicate_skipped", identity=identity, messageId=msg.messageId, step=session.step)
            return {"status": "duplicate", "step": session.step}

        text, voice, fallback = _resolve_input(msg, caps)
        if fallback is not None:
            _mark_processed(session, msg.messageId)
            save_session(session)
            reply = translator.to_user(fallback, session.languagePreference) if caps.bilingual else fallback
            outcome = TurnOutcome(session=session, reply=reply)
        else:
            outcome = advance(session, text, voice=voice, caps=caps,
                              on_drafting=lambda notice: _safe_send(identity, notice))
            if outcome.retryable:
                raise PersistenceError(f"store unavailable during turn for {identity}")
            if outcome.persist:
                _mark_processed(outcome.session, msg.messageId)
                # Persist before any reply leaves the process
                save_session(outcome.session)

    if not outcome.persist:
        metrics.record_turn_failed()
        _safe_send(identity, outcome.reply)
        return {"status": "engine_error", "step": session.step}

    _deliver(identity, outcome, voice)

    latency_ms = int((time.time() - start) * 1000)
    log(
        event="turn_processed",
        identity=identity,
        step=outcome.session.step,
        voice=bool(voice),
        draftStatus=outcome.draft_status or "",
        latencyMs=latency_ms,
    )
    try:
        metrics.record_turn(
            latency_ms,
            drafted=outcome.draft_status == "delivered",
            insufficient=outcome.draft_status == "insufficient",
            voice=voice,
        )
    except Exception as e:
        log(event="metrics_failed", error=str(e)[:200])

    return {
        "status": "voice_fallback" if fallback is not None else "processed",
        "step": outcome.session.step,
    }
