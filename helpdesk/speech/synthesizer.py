from typing import Optional

from helpdesk.core.errors import HelpdeskError
from helpdesk.observability.logging import log
from helpdesk.settings import settings
from helpdesk.speech import sarvam_client
from helpdesk.store import artifact_cache


def should_mirror(reply: str, voice: bool) -> bool:
    """Only voice-initiated turns get audio, and only for short replies."""
    return bool(voice and settings.VOICE_ENABLED and reply and len(reply) <= settings.TTS_MAX_REPLY_CHARS)


def synthesize_reply(text: str, lang: Optional[str]) -> Optional[str]:
    """Speak `text` and return a one-time artifact URL, or None on any failure."""
    try:
        audio = sarvam_client.text_to_speech(text, lang or settings.CANONICAL_LANGUAGE)
        artifact_id = artifact_cache.put_artifact(audio, artifact_cache.WAV)
    except HelpdeskError as e:
        log(event="tts_skipped", error=str(e)[:200])
        return None
    return artifact_cache.artifact_url(artifact_id)
