from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

# Intake dialogue states. Each non-terminal state consumes exactly one
# inbound message and emits exactly one prompt.

# Interaction Surface: Welcome
# Slot written: None
START = "START"

# Interaction Surface: Reply-language menu
# Slot written: None (sets languagePreference)
LANGUAGE_SELECT = "LANGUAGE_SELECT"

# Interaction Surface: Linear intake
# Slot written: the one named in DIALOGUE below
COLLECT_ISSUE = "COLLECT_ISSUE"
COLLECT_COUNTERPARTY = "COLLECT_COUNTERPARTY"
COLLECT_AMOUNT = "COLLECT_AMOUNT"
COLLECT_DATE = "COLLECT_DATE"

# Interaction Surface: yes/restart gate in front of drafting
CONFIRM = "CONFIRM"

# Interaction Surface: Draft delivered (or refused); "yes" re-drafts
COMPLETED = "COMPLETED"

# Interaction Surface: Follow-up sent by the outcome sweep
AWAITING_OUTCOME = "AWAITING_OUTCOME"

ALL_STEPS = (
    START,
    LANGUAGE_SELECT,
    COLLECT_ISSUE,
    COLLECT_COUNTERPARTY,
    COLLECT_AMOUNT,
    COLLECT_DATE,
    CONFIRM,
    COMPLETED,
    AWAITING_OUTCOME,
)


@dataclass(frozen=True)
class Slot:
    key: str
    step: str
    label: str


# Fixed, ordered intake definition. Keys are also the collectedFacts keys.
DIALOGUE: Tuple[Slot, ...] = (
    Slot(key="issue", step=COLLECT_ISSUE, label="Issue"),
    Slot(key="counterparty", step=COLLECT_COUNTERPARTY, label="Company"),
    Slot(key="amount", step=COLLECT_AMOUNT, label="Amount"),
    Slot(key="incidentDate", step=COLLECT_DATE, label="Date"),
)

SLOT_BY_STEP: Dict[str, Slot] = {s.step: s for s in DIALOGUE}

# Every edge the engine may take. Anything else is a bug.
# Collection steps loop on themselves when the input was empty.
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    START: frozenset({LANGUAGE_SELECT}),
    LANGUAGE_SELECT: frozenset({COLLECT_ISSUE, START, LANGUAGE_SELECT}),
    COLLECT_ISSUE: frozenset({COLLECT_ISSUE, COLLECT_COUNTERPARTY, START, LANGUAGE_SELECT}),
    COLLECT_COUNTERPARTY: frozenset({COLLECT_COUNTERPARTY, COLLECT_AMOUNT, START, LANGUAGE_SELECT}),
    COLLECT_AMOUNT: frozenset({COLLECT_AMOUNT, COLLECT_DATE, START, LANGUAGE_SELECT}),
    COLLECT_DATE: frozenset({COLLECT_DATE, CONFIRM, START, LANGUAGE_SELECT}),
    CONFIRM: frozenset({CONFIRM, COMPLETED, START, LANGUAGE_SELECT}),
    COMPLETED: frozenset({COMPLETED, START, LANGUAGE_SELECT, AWAITING_OUTCOME}),
    AWAITING_OUTCOME: frozenset({AWAITING_OUTCOME, COMPLETED, START, LANGUAGE_SELECT}),
}


def next_slot_step(step: str) -> Optional[str]:
    """Step that follows a collection step (COLLECT_DATE -> CONFIRM)."""
    steps = [s.step for s in DIALOGUE]
    if step not in steps:
        return None
    i = steps.index(step)
    return steps[i + 1] if i + 1 < len(steps) else CONFIRM


def is_valid_transition(src: str, dst: str) -> bool:
    return dst in TRANSITIONS.get(src, frozenset())


def facts_consistent(step: str, facts: Dict[str, str]) -> bool:
    """True when every slot before `step` is filled and none at/after it is.

    CONFIRM/COMPLETED/AWAITING_OUTCOME require all slots.
    """
    if step in (START, LANGUAGE_SELECT):
        return not any(facts.get(s.key) for s in DIALOGUE)
    if step in (CONFIRM, COMPLETED, AWAITING_OUTCOME):
        return all(facts.get(s.key) for s in DIALOGUE)
    seen_current = False
    for s in DIALOGUE:
        if s.step == step:
            seen_current = True
        filled = bool(facts.get(s.key))
        if not seen_current and not filled:
            return False
        if seen_current and filled:
            return False
    return True
