import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from helpdesk.core.errors import DraftParseError, TransientProviderError
from helpdesk.knowledge.retrieval import format_context, search
from helpdesk.llm.chat_client import chat_completion
from helpdesk.observability.logging import log
from helpdesk.settings import settings

RISK_LEVELS = ("LOW", "MEDIUM", "HIGH")

SYSTEM_PROMPT = """You are an expert Indian legal advisor drafting a formal legal notice for a consumer complaint.
Base the notice ONLY on the legal references supplied below. Cite only sections that appear in them;
if a point is not covered by the references, do not cite anything for it.

{context}

Assess the risk for the consumer (how contested or uncertain the claim is) as LOW, MEDIUM or HIGH.

Respond with a single JSON object and nothing else:
{{
  "citations": "the Acts and sections relied on, taken from the references",
  "draft_notice": "the formal text of the notice, addressed to the grievance officer of the company",
  "risk_level": "LOW | MEDIUM | HIGH"
}}"""


@dataclass(frozen=True)
class DraftResult:
    citations: str
    notice_body: str
    risk_level: str


def build_query(facts: Mapping[str, str]) -> str:
    return (
        f"Consumer complaint: {facts.get('issue', '')}. "
        f"Against {facts.get('counterparty', '')}. "
        f"Claiming Rs {facts.get('amount', '')}. "
        f"Date: {facts.get('incidentDate', '')}"
    )


def _facts_prompt(facts: Mapping[str, str]) -> str:
    return (
        "Facts of the complaint:\n"
        f"Company: {facts.get('counterparty', '')}\n"
        f"Amount: Rs {facts.get('amount', '')}\n"
        f"Date of order/incident: {facts.get('incidentDate', '')}\n"
        f"Issue: {facts.get('issue', '')}\n\n"
        "Generate the JSON response."
    )


def _extract_json(text: str) -> Dict[str, Any]:
    """
    Parse the first JSON object from model output.
    1) Try json.loads on full string
    2) If that fails, find first '{' and raw_decode from there
    """
    if not text or not text.strip():
        raise DraftParseError("Empty model output")
    s = text.strip()
    try:
        obj = json.loads(s)
    except ValueError:
        start = s.find("{")
        if start == -1:
            raise DraftParseError("No JSON object found in model output")
        try:
            obj, _ = json.JSONDecoder().raw_decode(s[start:])
        except ValueError as e:
            raise DraftParseError(f"Malformed JSON: {e}") from e
    if not isinstance(obj, dict):
        raise DraftParseError("Model output is not a JSON object")
    return obj


def _normalize_risk(value: Any) -> str:
    s = str(value or "").upper()
    # Accept decorated values such as "Medium Risk"
    for level in RISK_LEVELS:
        if level in s:
            return level
    raise DraftParseError(f"Unknown risk level: {str(value)[:40]}")


def parse_draft(text: str) -> DraftResult:
    data = _extract_json(text)
    citations = str(data.get("citations") or "").strip()
    body = str(data.get("draft_notice") or "").strip()
    if not citations or not body:
        raise DraftParseError("Missing citations or draft_notice")
    return DraftResult(citations=citations, notice_body=body, risk_level=_normalize_risk(data.get("risk_level")))


def draft_notice(facts: Mapping[str, str]) -> Optional[DraftResult]:
    """Retrieval-grounded draft, or None when grounding or parsing fails.

    The generation model is never called without retrieved context.
    """
    query = build_query(facts)
    provisions = search(query, top_k=settings.RETRIEVAL_TOP_K)
    context = format_context(provisions)
    if not context.strip():
        log(event="draft_insufficient_grounding", provisions=0)
        return None

    try:
        out = chat_completion(
            SYSTEM_PROMPT.format(context=context),
            _facts_prompt(facts),
            temperature=0.1,
            json_mode=True,
        )
    except TransientProviderError as e:
        log(event="draft_generation_failed", error=str(e)[:300])
        return None

    try:
        result = parse_draft(out)
    except DraftParseError as e:
        log(event="draft_parse_error", error=str(e)[:200], content=out[:2000])
        return None

    log(event="draft_generated", provisions=len(provisions), riskLevel=result.risk_level)
    return result
