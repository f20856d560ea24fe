"""
Conversation engine: one intake turn as a decision over the persisted session.

advance() never talks to the messaging channel and never raises. It works
on a copy of the session, so a failed turn leaves the caller's session
untouched and asks the caller not to persist anything.
"""
import copy
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from helpdesk.core import prompts
from helpdesk.core import state_machine as sm
from helpdesk.core.errors import PersistenceError
from helpdesk.llm.drafting import DraftResult, draft_notice
from helpdesk.observability.logging import log
from helpdesk.render.notice_pdf import NoticeMetadata, render_notice_artifact
from helpdesk.settings import settings
from helpdesk.speech import translator
from helpdesk.store.models import Session
from helpdesk.utils.time import now_ms

RESTART_TOKENS = {"restart", "start over", "reset"}
GREETING_TOKENS = {"hi", "hii", "hello", "hey", "namaste"}
YES_TOKENS = {"yes", "y", "yes please"}

# Facts are free text but bounded
MAX_FACT_CHARS = 500


@dataclass(frozen=True)
class Capabilities:
    voice: bool = True
    pdf: bool = True
    bilingual: bool = True

    @classmethod
    def from_settings(cls) -> "Capabilities":
        return cls(
            voice=settings.VOICE_ENABLED,
            pdf=settings.PDF_DELIVERY_ENABLED,
            bilingual=settings.BILINGUAL_ENABLED,
        )


@dataclass(frozen=True)
class DeliverDraft:
    """Send the drafted notice with its one-time artifact link."""
    media_url: str
    artifact_id: str


@dataclass
class TurnOutcome:
    session: Session
    reply: str
    side_effects: List[DeliverDraft] = field(default_factory=list)
    persist: bool = True
    # Store outage mid-turn: nothing persisted, nothing sent, queue should retry
    retryable: bool = False
    # "delivered" or "insufficient" when the turn attempted a draft
    draft_status: Optional[str] = None


def _kw(text: str) -> str:
    return " ".join((text or "").lower().split()).strip(" .!?,")


def _canonicalize(session: Session, text: str, caps: Capabilities) -> str:
    """Bring input into the canonical language, inferring a preference at most once."""
    if not caps.bilingual or not text:
        return text
    if session.languagePreference:
        return translator.to_canonical(text, session.languagePreference)
    if session.languageInferred or not any(c.isalpha() for c in text):
        return text
    canonical, inferred = translator.infer_language(text)
    if inferred:
        session.languagePreference = inferred
        session.languageInferred = True
    return canonical


def _handle_start(session: Session, caps: Capabilities) -> str:
    session.step = sm.LANGUAGE_SELECT
    return prompts.WELCOME + "\n\n" + (prompts.LANGUAGE_PROMPT if caps.bilingual else prompts.START_PROMPT)


def _handle_language(session: Session, choice: str, caps: Capabilities) -> str:
    tag = prompts.LANGUAGE_BY_CHOICE.get(choice) if caps.bilingual else None
    if tag:
        session.languagePreference = None if tag == settings.CANONICAL_LANGUAGE else tag
        session.languageInferred = True
    session.step = sm.COLLECT_ISSUE
    return prompts.SLOT_PROMPTS["issue"]


def _handle_collect(session: Session, value: str) -> str:
    slot = sm.SLOT_BY_STEP[session.step]
    value = value.strip()
    if not value:
        return prompts.SLOT_PROMPTS[slot.key]
    facts = dict(session.collectedFacts)
    facts[slot.key] = value[:MAX_FACT_CHARS]
    nxt = sm.next_slot_step(session.step)
    # Facts and step change together
    session.collectedFacts = facts
    session.step = nxt
    if nxt == sm.CONFIRM:
        return prompts.review_summary(facts)
    return prompts.SLOT_PROMPTS[sm.SLOT_BY_STEP[nxt].key]


def _deliver(session: Session, draft: DraftResult, caps: Capabilities) -> tuple[str, List[DeliverDraft]]:
    if not caps.pdf:
        return prompts.draft_inline(draft.citations, draft.risk_level, draft.notice_body), []

    facts = session.collectedFacts
    meta = NoticeMetadata(
        recipient=facts.get("counterparty", ""),
        subject=facts.get("issue", ""),
        amount=facts.get("amount", ""),
        incident_date=facts.get("incidentDate", ""),
        citations=draft.citations,
    )
    try:
        artifact_id, url = render_notice_artifact(draft.notice_body, meta)
    except PersistenceError:
        raise
    except Exception as e:
        # Rendering problems degrade to a text-only notice
        log(event="notice_render_failed", identity=session.identity, errorType=type(e).__name__, error=str(e)[:200])
        return prompts.draft_inline(draft.citations, draft.risk_level, draft.notice_body), []

    session.lastArtifactId = artifact_id
    return prompts.draft_ready(draft.citations, draft.risk_level, url), [DeliverDraft(media_url=url, artifact_id=artifact_id)]


def _handle_draft(session: Session, caps: Capabilities,
                  on_drafting: Optional[Callable[[str], None]] = None) -> tuple[str, List[DeliverDraft], str]:
    if on_drafting is not None:
        notice = prompts.DRAFTING_NOTICE
        on_drafting(translator.to_user(notice, session.languagePreference) if caps.bilingual else notice)
    draft = draft_notice(dict(session.collectedFacts))
    session.step = sm.COMPLETED
    if draft is None:
        session.generatedAt = None
        return prompts.INSUFFICIENT_DATA, [], "insufficient"

    reply, effects = _deliver(session, draft, caps)
    session.generatedAt = now_ms()
    session.outcomeAsked = False
    session.outcome = None
    return reply, effects, "delivered"


def _handle_outcome(session: Session, choice: str) -> str:
    outcome = prompts.OUTCOME_OPTIONS.get(choice)
    if not outcome:
        return prompts.OUTCOME_REPROMPT
    session.outcome = outcome
    session.step = sm.COMPLETED
    return prompts.OUTCOME_THANKS[outcome]


def _step(session: Session, raw_input: str, caps: Capabilities,
          on_drafting: Optional[Callable[[str], None]] = None) -> tuple[str, List[DeliverDraft], Optional[str]]:
    text = (raw_input or "").strip()
    canonical = _canonicalize(session, text, caps)
    kw, raw_kw = _kw(canonical), _kw(text)

    def said(tokens) -> bool:
        return kw in tokens or raw_kw in tokens

    if said(RESTART_TOKENS) or (session.step != sm.COMPLETED and said(GREETING_TOKENS)):
        session.reset()

    step = session.step
    if step == sm.START:
        return _handle_start(session, caps), [], None
    if step == sm.LANGUAGE_SELECT:
        return _handle_language(session, raw_kw, caps), [], None
    if step in sm.SLOT_BY_STEP:
        return _handle_collect(session, canonical), [], None
    if step in (sm.CONFIRM, sm.COMPLETED):
        if said(YES_TOKENS):
            return _handle_draft(session, caps, on_drafting)
        return (prompts.CONFIRM_GATE if step == sm.CONFIRM else prompts.COMPLETED_GATE), [], None
    if step == sm.AWAITING_OUTCOME:
        return _handle_outcome(session, raw_kw), [], None

    raise ValueError(f"unknown step {step!r}")


def advance(session: Session, raw_input: str, voice: bool = False,
            caps: Optional[Capabilities] = None,
            on_drafting: Optional[Callable[[str], None]] = None) -> TurnOutcome:
    """Decide the next state and reply for one inbound message.

    Returns the new session (a copy), the reply in the user's language and
    any delivery requests. on_drafting, when given, receives a short progress
    message just before a notice is drafted.
    """
    caps = caps or Capabilities.from_settings()
    working = copy.deepcopy(session)
    src = session.step
    try:
        reply, effects, draft_status = _step(working, raw_input, caps, on_drafting)
        if not sm.is_valid_transition(src, working.step):
            raise RuntimeError(f"illegal transition {src} -> {working.step}")
        if not sm.facts_consistent(working.step, working.collectedFacts):
            raise RuntimeError(f"facts inconsistent with step {working.step}")
    except PersistenceError as e:
        log(event="turn_persistence_error", identity=session.identity, step=src, error=str(e)[:200])
        return TurnOutcome(session=session, reply="", persist=False, retryable=True)
    except Exception as e:
        log(event="turn_engine_error", identity=session.identity, step=src,
            errorType=type(e).__name__, error=str(e)[:300])
        return TurnOutcome(
            session=session,
            reply=translator.to_user(prompts.APOLOGY, session.languagePreference) if caps.bilingual else prompts.APOLOGY,
            persist=False,
        )

    if caps.bilingual:
        reply = translator.to_user(reply, working.languagePreference)
    log(event="turn_decided", identity=session.identity, fromStep=src, toStep=working.step,
        drafted=bool(effects), voice=bool(voice))
    return TurnOutcome(session=working, reply=reply, side_effects=effects, draft_status=draft_status)
