import httpx

from helpdesk.core.errors import TransientProviderError
from helpdesk.observability.logging import log
from helpdesk.settings import settings
from helpdesk.speech import sarvam_client

# Channel media URLs require the account credentials (HTTP basic auth)
_MEDIA_TIMEOUT_SEC = 15.0
_MAX_MEDIA_BYTES = 16 * 1024 * 1024

_EXTENSIONS = {
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/amr": "amr",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/webm": "webm",
}


def is_audio(content_type: str | None) -> bool:
    return bool(content_type) and content_type.split(";")[0].strip().lower().startswith("audio/")


def download_media(media_url: str) -> bytes:
    try:
        with httpx.Client(timeout=_MEDIA_TIMEOUT_SEC, follow_redirects=True) as client:
            resp = client.get(media_url, auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN))
    except httpx.HTTPError as e:
        raise TransientProviderError("media", f"download failed: {type(e).__name__}") from e
    if resp.status_code >= 400:
        raise TransientProviderError("media", f"download returned {resp.status_code}")
    if len(resp.content) > _MAX_MEDIA_BYTES:
        raise TransientProviderError("media", "voice note too large")
    return resp.content


def transcribe(media_url: str, content_type: str = "audio/ogg") -> str:
    """Download a voice attachment and return its transcript.

    Raises TransientProviderError on download/STT failure or an empty transcript.
    """
    base_type = (content_type or "audio/ogg").split(";")[0].strip().lower()
    audio = download_media(media_url)
    transcript, lang = sarvam_client.speech_to_text(
        audio,
        filename=f"voice.{_EXTENSIONS.get(base_type, 'ogg')}",
        content_type=base_type,
    )
    transcript = transcript.strip()
    if not transcript:
        raise TransientProviderError("stt", "empty transcript")
    log(event="voice_transcribed", lang=lang or "", transcript=transcript, chars=len(transcript))
    return transcript
