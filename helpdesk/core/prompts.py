"""Fixed reply texts, written in the canonical language."""
from typing import Dict, Mapping, Tuple

# Menu number -> (language tag, display name)
LANGUAGE_MENU: Tuple[Tuple[str, str, str], ...] = (
    ("1", "en-IN", "English"),
    ("2", "hi-IN", "हिन्दी (Hindi)"),
    ("3", "ta-IN", "தமிழ் (Tamil)"),
    ("4", "te-IN", "తెలుగు (Telugu)"),
    ("5", "bn-IN", "বাংলা (Bengali)"),
    ("6", "mr-IN", "मराठी (Marathi)"),
    ("7", "kn-IN", "ಕನ್ನಡ (Kannada)"),
)
LANGUAGE_BY_CHOICE: Dict[str, str] = {num: tag for num, tag, _ in LANGUAGE_MENU}

WELCOME = (
    "Welcome to the Consumer Scam Helpdesk. 👋\n\n"
    "I can help you complain officially against e-commerce fraud and draft a legal notice."
)

LANGUAGE_PROMPT = "Choose your language by replying with a number:\n" + "\n".join(
    f"*{num}* - {name}" for num, _, name in LANGUAGE_MENU
)

# Used when the bilingual capability is off
START_PROMPT = "Type *start* to begin."

SLOT_PROMPTS: Dict[str, str] = {
    "issue": 'Please describe the issue in one short sentence (e.g., "Received fake product", "Refund not processed").',
    "counterparty": "Got it. What is the exact name of the company or website (e.g., Amazon, Flipkart, XYZ Fashion)?",
    "amount": "What is the disputed amount in Rupees? (e.g., 2500)",
    "incidentDate": "When did this happen? Provide the date of the order/incident (e.g., 12 Oct 2025).",
}

CONFIRM_GATE = "Please type *YES* to generate the legal notice or *RESTART* to start over."
COMPLETED_GATE = "Type *YES* to generate the notice again or *RESTART* to start a new complaint."

INSUFFICIENT_DATA = (
    "⚠️ INSUFFICIENT LEGAL DATA. We couldn't safely draft a notice for this specific issue. "
    "Please consult a legal professional."
)

APOLOGY = "Sorry, I ran into a problem handling that. Please try again in a moment."

# Sent ahead of drafting so the user knows the turn is still in progress
DRAFTING_NOTICE = "⏳ Generating your legal notice using Indian Consumer Law. This will take ~10 seconds..."

VOICE_NOT_UNDERSTOOD = "Sorry, I couldn't understand that voice note. Could you please type your answer instead?"
VOICE_DISABLED = "Voice notes aren't supported here yet. Please type your answer."

OUTCOME_OPTIONS: Dict[str, str] = {
    "1": "RESOLVED",
    "2": "PARTIAL",
    "3": "NO_REPLY",
}

OUTCOME_THANKS: Dict[str, str] = {
    "RESOLVED": "That's great news! 🎉 Thank you for letting us know.",
    "PARTIAL": "Thanks for the update. If the rest stays unresolved, you can escalate to the District Consumer Commission.",
    "NO_REPLY": "Thanks for the update. If there is still no reply after 30 days, you can file a complaint on the National Consumer Helpline (1915) or e-Daakhil.",
}

OUTCOME_REPROMPT = "Please reply with *1*, *2* or *3*."


def review_summary(facts: Mapping[str, str]) -> str:
    return (
        "Please review your details:\n\n"
        f"*Company:* {facts.get('counterparty', '')}\n"
        f"*Amount:* Rs {facts.get('amount', '')}\n"
        f"*Date:* {facts.get('incidentDate', '')}\n"
        f"*Issue:* {facts.get('issue', '')}\n\n"
        "Type *YES* to generate a legal notice, or *RESTART* to start over."
    )


def draft_ready(citations: str, risk_level: str, media_url: str | None) -> str:
    lines = [
        f"*LEGAL BASIS:*\n{citations}",
        f"*Risk Level:* {risk_level.title()}",
        "*Human Review:* Pending 👨‍⚖️",
    ]
    if media_url:
        lines.append(f"Your legal notice is attached as a PDF. The link works once: {media_url}")
    lines.append("_Tip: Forward this draft to the company's grievance email or print it._")
    return "\n\n".join(lines)


def draft_inline(citations: str, risk_level: str, notice_body: str) -> str:
    return (
        f"*LEGAL BASIS:*\n{citations}\n\n"
        f"*Risk Level:* {risk_level.title()}\n"
        "*Human Review:* Pending 👨‍⚖️\n\n"
        f"*DRAFT NOTICE:*\n{notice_body}\n\n"
        "_Tip: Forward this draft to the company's grievance email or print it._"
    )


def outcome_followup(counterparty: str | None) -> str:
    return (
        f"Hi there! It's been 48 hours since you generated your legal notice for {counterparty or 'the company'}.\n\n"
        "Did the company respond?\n\n"
        "Reply with:\n"
        "*1* - Yes, full refund/resolution\n"
        "*2* - Yes, partial resolution\n"
        "*3* - No reply yet"
    )
