import base64
import hashlib
import hmac
from typing import Iterable, Tuple


def compute_signature(auth_token: str, url: str, params: Iterable[Tuple[str, str]]) -> str:
    """Twilio request signature: HMAC-SHA1 over the full URL followed by
    every POST parameter name+value, sorted by name."""
    data = url + "".join(f"{k}{v}" for k, v in sorted(params, key=lambda kv: (kv[0], kv[1])))
    digest = hmac.new(auth_token.encode("utf-8"), data.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def is_valid_signature(auth_token: str, signature: str, url: str, params: Iterable[Tuple[str, str]]) -> bool:
    if not auth_token or not signature:
        return False
    expected = compute_signature(auth_token, url, list(params))
    return hmac.compare_digest(expected, signature)
