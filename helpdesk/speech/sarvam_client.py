import base64
import random
import time
from typing import Optional, Tuple

import httpx

from helpdesk.core.errors import TransientProviderError
from helpdesk.settings import settings

# Sarvam AI REST API (translation, speech-to-text, text-to-speech)
# Auth: api-subscription-key header

TRANSLATE_MODEL = "mayura:v1"
STT_MODEL = "saaras:v3"
TTS_MODEL = "bulbul:v3"

# Reuse a single client for keep-alive
_client = httpx.Client(timeout=settings.SARVAM_TIMEOUT_SEC)


def _sleep_backoff(attempt: int, retry_after: float | None = None) -> None:
    """Small bounded exponential backoff with jitter."""
    if retry_after is not None:
        time.sleep(min(retry_after, 5.0))
        return
    base = min(2.0, 0.35 * (2 ** attempt))
    time.sleep(base + random.uniform(0.0, 0.2))


def _post(provider: str, path: str, *, json: Optional[dict] = None, data: Optional[dict] = None,
          files: Optional[dict] = None) -> dict:
    """POST to Sarvam with brief retries on 429/5xx; raises TransientProviderError."""
    if not settings.SARVAM_API_KEY:
        raise TransientProviderError(provider, "SARVAM_API_KEY is not set")

    url = f"{settings.SARVAM_BASE_URL.rstrip('/')}{path}"
    headers = {"api-subscription-key": settings.SARVAM_API_KEY}
    last_error = None

    for attempt in range(3):
        try:
            resp = _client.post(url, headers=headers, json=json, data=data, files=files)
        except httpx.HTTPError as e:
            last_error = f"{type(e).__name__}: {e}"
            _sleep_backoff(attempt)
            continue

        if resp.status_code < 400:
            try:
                body = resp.json()
            except ValueError as e:
                raise TransientProviderError(provider, f"invalid JSON response: {e}") from e
            if not isinstance(body, dict):
                raise TransientProviderError(provider, f"unexpected response type {type(body).__name__}")
            return body

        if resp.status_code in (429, 500, 502, 503):
            last_error = f"{resp.status_code} {resp.text[:200]}"
            retry_after = None
            if "retry-after" in resp.headers:
                try:
                    retry_after = float(resp.headers["retry-after"])
                except ValueError:
                    retry_after = None
            _sleep_backoff(attempt, retry_after=retry_after)
            continue

        # Non-retriable
        last_error = f"{resp.status_code} {resp.text[:200]}"
        break

    raise TransientProviderError(provider, f"unavailable after retries: {last_error}")


def translate(text: str, source_language: str, target_language: str) -> Tuple[str, Optional[str]]:
    """Translate text. Returns (translated_text, detected_or_given_source_language)."""
    data = _post(
        "translate",
        "/translate",
        json={
            "input": text,
            "source_language_code": source_language,
            "target_language_code": target_language,
            "model": TRANSLATE_MODEL,
            "enable_preprocessing": True,
        },
    )
    translated = data.get("translated_text")
    if not isinstance(translated, str):
        raise TransientProviderError("translate", "missing translated_text")
    return translated, data.get("source_language_code") or None


def speech_to_text(audio: bytes, filename: str = "voice.ogg",
                   content_type: str = "audio/ogg") -> Tuple[str, Optional[str]]:
    """Transcribe audio bytes. Returns (transcript, detected_language)."""
    data = _post(
        "stt",
        "/speech-to-text",
        data={"model": STT_MODEL, "language_code": "unknown", "with_timestamps": "false"},
        files={"file": (filename, audio, content_type)},
    )
    return str(data.get("transcript") or ""), data.get("language_code") or None


def text_to_speech(text: str, language: str) -> bytes:
    """Synthesize WAV audio. Input beyond the provider cap is truncated."""
    limit = int(settings.TTS_INPUT_CHAR_LIMIT)
    clipped = text if len(text) <= limit else text[:limit]
    data = _post(
        "tts",
        "/text-to-speech",
        json={
            "inputs": [clipped],
            "target_language_code": language,
            "model": TTS_MODEL,
            "speaker": settings.TTS_SPEAKER,
            "pace": 1.0,
            "enable_preprocessing": True,
        },
    )
    audios = data.get("audios") or []
    if not audios:
        raise TransientProviderError("tts", "no audio returned")
    try:
        return base64.b64decode(audios[0])
    except (ValueError, TypeError) as e:
        raise TransientProviderError("tts", f"undecodable audio: {e}") from e
