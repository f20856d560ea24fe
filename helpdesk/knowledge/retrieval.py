import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from helpdesk.knowledge.corpus import PROVISIONS


@dataclass(frozen=True)
class Provision:
    law_name: str
    section: str
    summary: str
    source_url: str


def _words(query: str) -> List[str]:
    return [w for w in re.split(r"\s+", query.lower()) if len(w) > 2]


def search(query: str, top_k: int = 3, corpus: Optional[Iterable[dict]] = None) -> List[Provision]:
    """Rank provisions by keyword overlap with the query.

    Exact keyword containment scores 3, partial word overlap scores 1 per
    word. Only positive scores are returned, best first, ties keep corpus
    order so results are deterministic.
    """
    q = (query or "").lower()
    words = _words(q)
    scored = []
    for idx, item in enumerate(PROVISIONS if corpus is None else corpus):
        score = 0
        for kw in item.get("keywords", []):
            kw = kw.lower()
            if kw in q:
                score += 3
            for w in words:
                if kw in w or w in kw:
                    score += 1
        if score > 0:
            scored.append((score, idx, item))

    scored.sort(key=lambda t: (-t[0], t[1]))
    return [
        Provision(
            law_name=item["law_name"],
            section=item["section"],
            summary=item["summary"],
            source_url=item["source_url"],
        )
        for _, _, item in scored[: max(0, int(top_k))]
    ]


def format_context(provisions: List[Provision]) -> str:
    """Grounding block injected into the drafting prompt; empty when nothing matched."""
    if not provisions:
        return ""
    lines = [f"- {p.law_name}, {p.section}: {p.summary} [Source: {p.source_url}]" for p in provisions]
    return (
        "--- VERIFIED LEGAL REFERENCES ---\n"
        + "\n".join(lines)
        + "\n--- END REFERENCES ---"
    )
