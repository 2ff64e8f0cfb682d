"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Values are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Firestore and OpenAI credentials are optional: without them the app still
    starts, live subscriptions report the store as unavailable and the AI
    flows answer 503.
    """

    # App
    app_name: str = "averzo"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:9002"

    # Request / middleware
    request_id_header: str = "X-Request-ID"

    # Firebase / Firestore: use key (env) or path (file).
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    # Tenant for path rewriting; defaults to the service account's project_id.
    firebase_project_id: str | None = None
    firestore_poll_interval_seconds: float = 2.0
    # Legacy behaviour: rewritten queries lose filters/order/limit (over-fetch).
    firestore_drop_rewritten_constraints: bool = False

    # Generative AI flows
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"
    flows_rate_limit: str = "30/minute"

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """Validate numeric ranges and the telemetry exporter name."""
        if self.firestore_poll_interval_seconds <= 0:
            raise ValueError(
                "FIRESTORE_POLL_INTERVAL_SECONDS must be greater than 0, "
                f"got: {self.firestore_poll_interval_seconds!r}"
            )
        if not 0.0 <= self.telemetry_sample_rate <= 1.0:
            raise ValueError("TELEMETRY_SAMPLE_RATE must be between 0.0 and 1.0")
        if self.telemetry_exporter not in ("console", "otlp", "none"):
            raise ValueError(
                f"Invalid telemetry_exporter '{self.telemetry_exporter}'. "
                "Must be one of: 'console', 'otlp', 'none'"
            )
        return self

    def openai_key_value(self) -> str | None:
        """Return the OpenAI API key, or None when unset or blank."""
        if self.openai_api_key is None:
            return None
        return self.openai_api_key.get_secret_value() or None


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
