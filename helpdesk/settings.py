import os
from dotenv import load_dotenv

from helpdesk.core.errors import FatalConfigError

load_dotenv()

class Settings:
    # "production" enforces channel signature validation
    APP_ENV: str = os.getenv("APP_ENV", "development").lower()

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_QUEUE_NAME: str = os.getenv("RQ_QUEUE_NAME", "inbound")

    # Dispatch split for inbound webhooks:
    # - "queue": always enqueue (fails over to inline if Redis/RQ is unreachable)
    # - "inline": always run the turn inside the webhook request
    # - "auto": same as "queue"; kept for deployments that set it explicitly
    DISPATCH_MODE: str = os.getenv("DISPATCH_MODE", "auto").lower()
    INBOUND_JOB_MAX_RETRIES: int = int(os.getenv("INBOUND_JOB_MAX_RETRIES", "3"))
    INBOUND_JOB_TIMEOUT_SEC: int = int(os.getenv("INBOUND_JOB_TIMEOUT_SEC", "120"))
    # HMAC secret for envelopes placed on the queue; the worker re-verifies it
    QUEUE_SIGNING_SECRET: str = os.getenv("QUEUE_SIGNING_SECRET", "")

    # Messaging channel (Twilio WhatsApp)
    TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_WHATSAPP_NUMBER: str = os.getenv("TWILIO_WHATSAPP_NUMBER", "")
    TWILIO_API_BASE: str = os.getenv("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01")
    SKIP_SIGNATURE_VALIDATION: bool = os.getenv("SKIP_SIGNATURE_VALIDATION", "false").lower() == "true"
    SEND_TIMEOUT_SEC: float = float(os.getenv("SEND_TIMEOUT_SEC", "10"))

    # Public URL the channel uses to fetch one-time artifacts
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    ARTIFACT_TTL_SEC: int = int(os.getenv("ARTIFACT_TTL_SEC", "3600"))

    # Speech + translation provider (Sarvam)
    SARVAM_API_KEY: str = os.getenv("SARVAM_API_KEY", "")
    SARVAM_BASE_URL: str = os.getenv("SARVAM_BASE_URL", "https://api.sarvam.ai")
    SARVAM_TIMEOUT_SEC: float = float(os.getenv("SARVAM_TIMEOUT_SEC", "15"))
    TTS_INPUT_CHAR_LIMIT: int = int(os.getenv("TTS_INPUT_CHAR_LIMIT", "500"))
    TTS_SPEAKER: str = os.getenv("TTS_SPEAKER", "kavya")
    CANONICAL_LANGUAGE: str = os.getenv("CANONICAL_LANGUAGE", "en-IN")

    # Generation model (OpenAI-compatible chat endpoint; Groq by default)
    LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "https://api.groq.com/openai/v1").rstrip("/")
    LLM_API_KEY: str = os.getenv("LLM_API_KEY", "")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
    LLM_REQUEST_TIMEOUT_SEC: float = float(os.getenv("LLM_REQUEST_TIMEOUT_SEC", "20"))
    LLM_MAX_RETRIES: int = int(os.getenv("LLM_MAX_RETRIES", "2"))
    RETRIEVAL_TOP_K: int = int(os.getenv("RETRIEVAL_TOP_K", "3"))

    # Capability flags (one turn function, features toggled here)
    VOICE_ENABLED: bool = os.getenv("VOICE_ENABLED", "true").lower() == "true"
    PDF_DELIVERY_ENABLED: bool = os.getenv("PDF_DELIVERY_ENABLED", "true").lower() == "true"
    BILINGUAL_ENABLED: bool = os.getenv("BILINGUAL_ENABLED", "true").lower() == "true"
    # Replies longer than this are sent as text only, even on voice turns
    TTS_MAX_REPLY_CHARS: int = int(os.getenv("TTS_MAX_REPLY_CHARS", "500"))

    # Outcome sweep
    OUTCOME_WINDOW_HOURS: int = int(os.getenv("OUTCOME_WINDOW_HOURS", "48"))
    OUTCOME_SWEEP_INTERVAL_MIN: int = int(os.getenv("OUTCOME_SWEEP_INTERVAL_MIN", "60"))
    OUTCOME_SWEEP_BATCH: int = int(os.getenv("OUTCOME_SWEEP_BATCH", "200"))

    # Session serialization + idempotency
    SESSION_LOCK_TTL_MS: int = int(os.getenv("SESSION_LOCK_TTL_MS", "60000"))
    PROCESSED_IDS_WINDOW: int = int(os.getenv("PROCESSED_IDS_WINDOW", "20"))

    # Operational surfaces
    CRON_API_KEY: str = os.getenv("CRON_API_KEY", "")
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"
    METRICS_ENABLED: bool = os.getenv("METRICS_ENABLED", "true").lower() == "true"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV in ("prod", "production")


settings = Settings()


def validate_runtime_config() -> None:
    """Fail fast when credentials the turn pipeline cannot work without are missing.

    Called at startup and at background job entry, never per turn.
    """
    required = ["TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_WHATSAPP_NUMBER", "LLM_API_KEY"]
    if settings.VOICE_ENABLED or settings.BILINGUAL_ENABLED:
        required.append("SARVAM_API_KEY")
    if settings.is_production:
        required.append("QUEUE_SIGNING_SECRET")
    missing = [name for name in required if not getattr(settings, name, "")]
    if missing:
        raise FatalConfigError(f"Missing required configuration: {', '.join(missing)}")
