"""
Language normalization between the user's language and the canonical
processing language. Translation failures never propagate: the original
text is returned so the user still gets an answer.
"""
from typing import Optional

from helpdesk.core.errors import TransientProviderError
from helpdesk.observability.logging import log
from helpdesk.settings import settings
from helpdesk.speech import sarvam_client


def _is_canonical(lang: Optional[str]) -> bool:
    if not lang:
        return True
    canonical = settings.CANONICAL_LANGUAGE.lower()
    lang = lang.lower()
    # "en", "en-US" etc. are treated as the canonical language family
    return lang == canonical or lang.split("-")[0] == canonical.split("-")[0]


def _squash(text: str) -> str:
    return " ".join((text or "").lower().split())


def to_canonical(text: str, declared_lang: Optional[str]) -> str:
    if not text or _is_canonical(declared_lang):
        return text
    try:
        out, _ = sarvam_client.translate(text, declared_lang, settings.CANONICAL_LANGUAGE)
        return out or text
    except TransientProviderError as e:
        log(event="translate_fallback", direction="to_canonical", lang=declared_lang, error=str(e)[:200])
        return text


def to_user(text: str, declared_lang: Optional[str]) -> str:
    if not text or _is_canonical(declared_lang):
        return text
    try:
        out, _ = sarvam_client.translate(text, settings.CANONICAL_LANGUAGE, declared_lang)
        return out or text
    except TransientProviderError as e:
        log(event="translate_fallback", direction="to_user", lang=declared_lang, error=str(e)[:200])
        return text


def infer_language(text: str) -> tuple[str, Optional[str]]:
    """Translate with auto-detection and report a non-canonical source language.

    Returns (canonical_text, inferred_lang). inferred_lang is set only when
    the translation actually changed the text (case/whitespace-insensitive).
    """
    if not text or not text.strip():
        return text, None
    try:
        out, detected = sarvam_client.translate(text, "auto", settings.CANONICAL_LANGUAGE)
    except TransientProviderError as e:
        log(event="language_inference_failed", error=str(e)[:200])
        return text, None

    if not out or _squash(out) == _squash(text):
        return text, None
    if _is_canonical(detected):
        # Changed but reported as canonical: keep the canonical rendering, infer nothing
        return out, None
    log(event="language_inferred", lang=detected)
    return out, detected
