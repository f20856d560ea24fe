"""
Error taxonomy for the helpdesk pipeline.

Adapters convert provider/network exceptions into these types before they
reach the conversation engine. The engine itself never raises; the turn
function lets PersistenceError escape so the queue can retry.
"""


class HelpdeskError(Exception):
    """Base class for all helpdesk errors."""


class ChannelAuthError(HelpdeskError):
    """Inbound request failed channel or queue signature validation."""


class TransientProviderError(HelpdeskError):
    """Translation, STT, TTS, generation or network failure."""

    def __init__(self, provider: str, message: str = ""):
        self.provider = provider
        super().__init__(f"{provider}: {message}" if message else provider)


class InsufficientGroundingError(HelpdeskError):
    """Retrieval returned no grounding context; drafting must not proceed."""


class DraftParseError(InsufficientGroundingError):
    """Generation output did not match the structured draft schema."""


class PersistenceError(HelpdeskError):
    """Session or artifact store unavailable; the turn is aborted."""


class FatalConfigError(HelpdeskError):
    """Required configuration or credentials are missing."""
