import time
import random
import httpx

from helpdesk.core.errors import TransientProviderError
from helpdesk.settings import settings

# OpenAI-compatible chat endpoint (Groq by default); base url includes /v1
_client = httpx.Client(timeout=settings.LLM_REQUEST_TIMEOUT_SEC)

# Total wall-clock budget across retries
CLIENT_BUDGET_SEC = 45.0


def _headers() -> dict:
    h = {"Content-Type": "application/json"}
    if settings.LLM_API_KEY:
        h["Authorization"] = f"Bearer {settings.LLM_API_KEY}"
    return h


def chat_completion(system: str, user: str, *, temperature: float = 0.1, max_tokens: int = 1500,
                    json_mode: bool = False) -> str:
    """Call the chat completions endpoint and return the message content.

    POST {LLM_BASE_URL}/chat/completions
    """
    if not settings.LLM_BASE_URL:
        raise TransientProviderError("generation", "LLM_BASE_URL is not set")

    url = f"{settings.LLM_BASE_URL}/chat/completions"
    payload = {
        "model": settings.LLM_MODEL,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        "temperature": float(temperature),
        "max_tokens": int(max_tokens),
    }
    if json_mode:
        payload["response_format"] = {"type": "json_object"}

    max_retries = max(1, int(settings.LLM_MAX_RETRIES))
    start = time.time()
    attempt = 0
    last_err = None
    while (time.time() - start) < CLIENT_BUDGET_SEC and attempt < max_retries:
        attempt += 1
        try:
            resp = _client.post(url, headers=_headers(), json=payload)
            resp.raise_for_status()
            data = resp.json()
            return data["choices"][0]["message"]["content"] or ""
        except httpx.HTTPStatusError as e:
            last_err = e
            # 4xx other than rate limiting will not improve on retry
            if e.response.status_code < 500 and e.response.status_code != 429:
                break
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            last_err = e
        remaining = CLIENT_BUDGET_SEC - (time.time() - start)
        if remaining <= 0:
            break
        time.sleep(min(0.3 * attempt + random.uniform(0.0, 0.1), max(0.0, remaining)))

    elapsed = round(time.time() - start, 3)
    raise TransientProviderError("generation", f"attempts={attempt}, elapsed={elapsed}s: {last_err}")
