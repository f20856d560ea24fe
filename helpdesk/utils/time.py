import time
from datetime import datetime, timezone

def now_ms() -> int:
    return int(time.time() * 1000)

def hours_ms(hours: float) -> int:
    return int(hours * 60 * 60 * 1000)

def format_notice_date(ts_ms: int | None = None) -> str:
    """Date line for notices, e.g. '19 Oct 2026'."""
    dt = datetime.fromtimestamp((ts_ms or now_ms()) / 1000, tz=timezone.utc)
    return dt.strftime("%d %b %Y")
