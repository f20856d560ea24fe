from dataclasses import dataclass, field
from typing import Dict, List, Optional

from helpdesk.core import state_machine as sm


def empty_facts() -> Dict[str, str]:
    # Ordered per the dialogue definition; unfilled slots are absent
    return {}


@dataclass
class Session:
    # Core identifier: the channel sender address (e.g. "whatsapp:+9198...")
    identity: str = ""

    # Intake progress. step and collectedFacts always change together.
    step: str = sm.START
    collectedFacts: Dict[str, str] = field(default_factory=empty_facts)

    # Reply language. None means canonical.
    languagePreference: Optional[str] = None
    # Set once a preference was chosen or inferred; inference never repeats.
    languageInferred: bool = False

    # Drafting + follow-up
    generatedAt: Optional[int] = None  # epoch ms
    outcomeAsked: bool = False
    outcome: Optional[str] = None
    lastArtifactId: Optional[str] = None

    # Idempotency window of inbound channel message ids already processed
    processedMessageIds: List[str] = field(default_factory=list)

    # Ops
    updatedAtEpoch: Optional[int] = None

    def reset(self) -> None:
        """Overwrite in place for a restart; only the language choice survives."""
        self.step = sm.START
        self.collectedFacts = empty_facts()
        self.generatedAt = None
        self.outcomeAsked = False
        self.outcome = None
        self.lastArtifactId = None

    def __post_init__(self):
        if self.step not in sm.ALL_STEPS:
            self.step = sm.START
            self.collectedFacts = empty_facts()
        if self.collectedFacts is None:
            self.collectedFacts = empty_facts()
        # Keep slot order stable regardless of how the JSON was written
        ordered = {}
        for slot in sm.DIALOGUE:
            if slot.key in self.collectedFacts:
                ordered[slot.key] = self.collectedFacts[slot.key]
        self.collectedFacts = ordered
