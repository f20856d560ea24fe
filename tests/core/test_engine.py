from unittest.mock import patch

from helpdesk.core import prompts
from helpdesk.core import state_machine as sm
from helpdesk.core.engine import Capabilities, advance
from helpdesk.core.errors import PersistenceError
from helpdesk.llm.drafting import DraftResult
from helpdesk.store.models import Session

TEXT_ONLY = Capabilities(voice=False, pdf=True, bilingual=False)
NO_PDF = Capabilities(voice=False, pdf=False, bilingual=False)
BILINGUAL = Capabilities(voice=False, pdf=True, bilingual=True)

FULL_FACTS = {
    "issue": "Fake product received",
    "counterparty": "Amazon",
    "amount": "2500",
    "incidentDate": "12 Oct 2025",
}

DRAFT = DraftResult(
    citations="Consumer Protection Act, 2019, Sections 34-37",
    notice_body="To the Grievance Officer,\n\nYou delivered a counterfeit product.",
    risk_level="MEDIUM",
)


def _session(step=sm.START, facts=None, **kwargs):
    return Session(identity="whatsapp:+919800000001", step=step, collectedFacts=dict(facts or {}), **kwargs)


def test_greeting_at_start_shows_welcome():
    out = advance(_session(), "hi", caps=TEXT_ONLY)
    assert out.session.step == sm.LANGUAGE_SELECT
    assert out.reply.startswith(prompts.WELCOME)
    assert out.persist is True


def test_language_menu_shown_when_bilingual():
    with patch("helpdesk.core.engine.translator") as mock_tr:
        mock_tr.to_user.side_effect = lambda text, lang: text
        mock_tr.infer_language.return_value = ("hi", None)
        out = advance(_session(), "hi", caps=BILINGUAL)
    assert out.session.step == sm.LANGUAGE_SELECT
    assert prompts.LANGUAGE_PROMPT in out.reply


def test_language_choice_sets_preference():
    with patch("helpdesk.core.engine.translator") as mock_tr:
        mock_tr.to_user.side_effect = lambda text, lang: f"[{lang}] {text}"
        out = advance(_session(sm.LANGUAGE_SELECT), "2", caps=BILINGUAL)
    assert out.session.step == sm.COLLECT_ISSUE
    assert out.session.languagePreference == "hi-IN"
    assert out.session.languageInferred is True
    assert out.reply == f"[hi-IN] {prompts.SLOT_PROMPTS['issue']}"


def test_english_choice_keeps_canonical_language():
    with patch("helpdesk.core.engine.translator") as mock_tr:
        mock_tr.to_user.side_effect = lambda text, lang: text
        out = advance(_session(sm.LANGUAGE_SELECT), "1", caps=BILINGUAL)
    assert out.session.languagePreference is None
    assert out.session.languageInferred is True


def test_linear_intake_fills_slots_in_order():
    s = _session(sm.LANGUAGE_SELECT)
    replies = []
    for text in ["1", "Fake product received", "Amazon", "2500", "12 Oct 2025"]:
        out = advance(s, text, caps=TEXT_ONLY)
        s = out.session
        replies.append(out.reply)

    assert s.step == sm.CONFIRM
    assert s.collectedFacts == FULL_FACTS
    assert list(s.collectedFacts.keys()) == ["issue", "counterparty", "amount", "incidentDate"]
    assert replies[1] == prompts.SLOT_PROMPTS["counterparty"]
    assert "*Company:* Amazon" in replies[-1]
    assert "*Amount:* Rs 2500" in replies[-1]


def test_empty_input_reprompts_same_slot():
    s = _session(sm.COLLECT_COUNTERPARTY, {"issue": "Refund not processed"})
    out = advance(s, "   ", caps=TEXT_ONLY)
    assert out.session.step == sm.COLLECT_COUNTERPARTY
    assert out.reply == prompts.SLOT_PROMPTS["counterparty"]
    assert out.session.collectedFacts == {"issue": "Refund not processed"}


def test_long_fact_is_truncated():
    out = advance(_session(sm.COLLECT_ISSUE), "x" * 2000, caps=TEXT_ONLY)
    assert len(out.session.collectedFacts["issue"]) == 500


def test_repeated_date_at_confirm_only_reprompts():
    s = _session(sm.CONFIRM, FULL_FACTS)
    with patch("helpdesk.core.engine.draft_notice") as mock_draft:
        out = advance(s, "12 Oct 2025", caps=TEXT_ONLY)
    assert out.session.step == sm.CONFIRM
    assert out.reply == prompts.CONFIRM_GATE
    assert out.session.collectedFacts == FULL_FACTS
    mock_draft.assert_not_called()


@patch("helpdesk.core.engine.render_notice_artifact")
@patch("helpdesk.core.engine.draft_notice")
def test_yes_at_confirm_drafts_and_delivers_pdf(mock_draft, mock_render):
    mock_draft.return_value = DRAFT
    mock_render.return_value = ("art123", "https://helpdesk.example.com/artifact/art123")

    out = advance(_session(sm.CONFIRM, FULL_FACTS), "YES", caps=TEXT_ONLY)

    assert out.session.step == sm.COMPLETED
    assert out.draft_status == "delivered"
    assert out.session.generatedAt is not None
    assert out.session.outcomeAsked is False
    assert out.session.lastArtifactId == "art123"
    assert len(out.side_effects) == 1
    assert out.side_effects[0].media_url.endswith("/artifact/art123")
    assert "Sections 34-37" in out.reply
    assert "Medium" in out.reply
    meta = mock_render.call_args.args[1]
    assert meta.recipient == "Amazon"
    assert meta.amount == "2500"


@patch("helpdesk.core.engine.draft_notice", return_value=None)
def test_insufficient_grounding_completes_without_draft(mock_draft):
    out = advance(_session(sm.CONFIRM, FULL_FACTS), "yes", caps=TEXT_ONLY)
    assert out.session.step == sm.COMPLETED
    assert out.reply == prompts.INSUFFICIENT_DATA
    assert out.reply.startswith("⚠️ INSUFFICIENT LEGAL DATA")
    assert out.session.generatedAt is None
    assert out.side_effects == []
    assert out.draft_status == "insufficient"


@patch("helpdesk.core.engine.render_notice_artifact")
@patch("helpdesk.core.engine.draft_notice", return_value=DRAFT)
def test_pdf_capability_off_sends_inline_notice(mock_draft, mock_render):
    out = advance(_session(sm.CONFIRM, FULL_FACTS), "yes", caps=NO_PDF)
    mock_render.assert_not_called()
    assert out.side_effects == []
    assert "You delivered a counterfeit product." in out.reply
    assert out.session.generatedAt is not None


@patch("helpdesk.core.engine.render_notice_artifact", side_effect=ValueError("layout"))
@patch("helpdesk.core.engine.draft_notice", return_value=DRAFT)
def test_render_failure_degrades_to_inline(mock_draft, mock_render):
    out = advance(_session(sm.CONFIRM, FULL_FACTS), "yes", caps=TEXT_ONLY)
    assert out.persist is True
    assert out.side_effects == []
    assert "*DRAFT NOTICE:*" in out.reply


@patch("helpdesk.core.engine.render_notice_artifact", side_effect=PersistenceError("redis down"))
@patch("helpdesk.core.engine.draft_notice", return_value=DRAFT)
def test_store_outage_during_draft_is_retryable(mock_draft, mock_render):
    s = _session(sm.CONFIRM, FULL_FACTS)
    out = advance(s, "yes", caps=TEXT_ONLY)
    assert out.retryable is True
    assert out.persist is False
    assert out.reply == ""
    assert s.step == sm.CONFIRM


@patch("helpdesk.core.engine.draft_notice", side_effect=RuntimeError("boom"))
def test_engine_error_apologises_and_leaves_session_untouched(mock_draft):
    s = _session(sm.CONFIRM, FULL_FACTS)
    out = advance(s, "yes", caps=TEXT_ONLY)
    assert out.persist is False
    assert out.retryable is False
    assert out.reply == prompts.APOLOGY
    assert out.session is s
    assert s.step == sm.CONFIRM
    assert s.generatedAt is None


def test_restart_mid_intake_keeps_language_only():
    s = _session(sm.COLLECT_AMOUNT, {"issue": "Fake", "counterparty": "Amazon"},
                 languagePreference="ta-IN", languageInferred=True)
    with patch("helpdesk.core.engine.translator") as mock_tr:
        mock_tr.to_canonical.side_effect = lambda text, lang: "restart"
        mock_tr.to_user.side_effect = lambda text, lang: text
        out = advance(s, "மீண்டும்", caps=BILINGUAL)
    assert out.session.step == sm.LANGUAGE_SELECT
    assert out.session.collectedFacts == {}
    assert out.session.languagePreference == "ta-IN"


def test_greeting_mid_intake_resets():
    s = _session(sm.COLLECT_DATE, {"issue": "Fake", "counterparty": "Amazon", "amount": "100"})
    out = advance(s, "Hello!", caps=TEXT_ONLY)
    assert out.session.step == sm.LANGUAGE_SELECT
    assert out.session.collectedFacts == {}


def test_greeting_at_completed_does_not_reset():
    s = _session(sm.COMPLETED, FULL_FACTS, generatedAt=1_700_000_000_000)
    out = advance(s, "hi", caps=TEXT_ONLY)
    assert out.session.step == sm.COMPLETED
    assert out.reply == prompts.COMPLETED_GATE
    assert out.session.collectedFacts == FULL_FACTS


def test_restart_at_completed_resets():
    s = _session(sm.COMPLETED, FULL_FACTS, generatedAt=1_700_000_000_000)
    out = advance(s, "restart", caps=TEXT_ONLY)
    assert out.session.step == sm.LANGUAGE_SELECT
    assert out.session.generatedAt is None


@patch("helpdesk.core.engine.render_notice_artifact", return_value=("a2", "https://h/artifact/a2"))
@patch("helpdesk.core.engine.draft_notice", return_value=DRAFT)
def test_yes_at_completed_redrafts(mock_draft, mock_render):
    s = _session(sm.COMPLETED, FULL_FACTS, generatedAt=1, outcomeAsked=True, outcome="PARTIAL")
    out = advance(s, "yes", caps=TEXT_ONLY)
    assert out.session.step == sm.COMPLETED
    assert out.session.generatedAt > 1
    assert out.session.outcomeAsked is False
    assert out.session.outcome is None
    mock_draft.assert_called_once()


def test_outcome_answer_records_and_completes():
    s = _session(sm.AWAITING_OUTCOME, FULL_FACTS, generatedAt=1, outcomeAsked=True)
    out = advance(s, "3", caps=TEXT_ONLY)
    assert out.session.step == sm.COMPLETED
    assert out.session.outcome == "NO_REPLY"
    assert out.reply == prompts.OUTCOME_THANKS["NO_REPLY"]
    assert out.session.outcomeAsked is True


def test_unknown_outcome_answer_reprompts():
    s = _session(sm.AWAITING_OUTCOME, FULL_FACTS, generatedAt=1, outcomeAsked=True)
    out = advance(s, "maybe", caps=TEXT_ONLY)
    assert out.session.step == sm.AWAITING_OUTCOME
    assert out.reply == prompts.OUTCOME_REPROMPT


def test_language_inferred_once_from_free_text():
    s = _session(sm.COLLECT_ISSUE)
    with patch("helpdesk.core.engine.translator") as mock_tr:
        mock_tr.infer_language.return_value = ("Fake product received", "hi-IN")
        mock_tr.to_user.side_effect = lambda text, lang: f"[{lang}] {text}"
        out = advance(s, "नकली सामान मिला", caps=BILINGUAL)
    assert out.session.languagePreference == "hi-IN"
    assert out.session.languageInferred is True
    assert out.session.collectedFacts["issue"] == "Fake product received"
    assert out.reply.startswith("[hi-IN]")


def test_no_inference_after_explicit_canonical_choice():
    s = _session(sm.COLLECT_ISSUE, languageInferred=True)
    with patch("helpdesk.core.engine.translator") as mock_tr:
        mock_tr.to_user.side_effect = lambda text, lang: text
        out = advance(s, "Refund not processed", caps=BILINGUAL)
    mock_tr.infer_language.assert_not_called()
    mock_tr.to_canonical.assert_not_called()
    assert out.session.collectedFacts["issue"] == "Refund not processed"


def test_preferred_language_input_is_canonicalized():
    s = _session(sm.COLLECT_COUNTERPARTY, {"issue": "Fake"}, languagePreference="hi-IN", languageInferred=True)
    with patch("helpdesk.core.engine.translator") as mock_tr:
        mock_tr.to_canonical.return_value = "Amazon"
        mock_tr.to_user.side_effect = lambda text, lang: text
        out = advance(s, "अमेज़न", caps=BILINGUAL)
    mock_tr.to_canonical.assert_called_once_with("अमेज़न", "hi-IN")
    assert out.session.collectedFacts["counterparty"] == "Amazon"


def test_input_session_is_never_mutated():
    s = _session(sm.COLLECT_ISSUE)
    out = advance(s, "Fake product", caps=TEXT_ONLY)
    assert s.step == sm.COLLECT_ISSUE
    assert s.collectedFacts == {}
    assert out.session is not s


def test_progress_notice_precedes_drafting():
    calls = []
    with patch("helpdesk.core.engine.draft_notice", side_effect=lambda facts: calls.append("draft")) as mock_draft:
        out = advance(_session(sm.CONFIRM, FULL_FACTS), "yes", caps=NO_PDF, on_drafting=calls.append)
    mock_draft.assert_called_once()
    assert calls == [prompts.DRAFTING_NOTICE, "draft"]
    assert out.reply == prompts.INSUFFICIENT_DATA


@patch("helpdesk.core.engine.draft_notice")
def test_no_progress_notice_without_draft(mock_draft):
    calls = []
    advance(_session(sm.CONFIRM, FULL_FACTS), "maybe", caps=TEXT_ONLY, on_drafting=calls.append)
    assert calls == []
    mock_draft.assert_not_called()
