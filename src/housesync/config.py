"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with HOUSESYNC_ prefix.

Learn: every timing constant of the sync layer (backoff, highlight and
animation windows) lives here so that tests and deployments can tune
them without touching the synchronizers.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via HOUSESYNC_* env vars."""

    # Backend (PostgREST-compatible REST API + anon key)
    backend_url: str = ""
    backend_anon_key: str = ""
    schema_name: str = "public"

    # Redis (change stream transport + notification fan-out)
    redis_url: str = "redis://localhost:6379/0"

    # Demo mode: set to a demo login id to force one-shot fetches
    demo_user: str = ""

    # Server
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Reconnection backoff
    reconnect_initial_delay_ms: int = 1000
    reconnect_max_delay_ms: int = 30000

    # Transient UI emphasis windows
    chore_highlight_ms: int = 2000
    house_animation_ms: int = 1500
    wellness_highlight_ms: int = 3000

    # Wellness monitor
    wellness_limit: int = 20
    wellness_logs_per_player: int = 30

    # Backend health probe
    health_check_timeout_seconds: float = 5.0
    health_check_interval_seconds: float = 60.0

    model_config = {"env_prefix": "HOUSESYNC_"}

    @property
    def backend_configured(self) -> bool:
        """True when a real backend URL and key are present (no placeholders)."""
        url = self.backend_url.strip()
        key = self.backend_anon_key.strip()
        return bool(
            url
            and key
            and "placeholder" not in url
            and url.startswith(("https://", "http://"))
        )

    @model_validator(mode="after")
    def validate_reconnect_window(self):
        """Backoff ceiling must not be below the first delay."""
        if self.reconnect_initial_delay_ms <= 0:
            raise ValueError("HOUSESYNC_RECONNECT_INITIAL_DELAY_MS must be positive")
        if self.reconnect_max_delay_ms < self.reconnect_initial_delay_ms:
            raise ValueError(
                "HOUSESYNC_RECONNECT_MAX_DELAY_MS must be >= "
                "HOUSESYNC_RECONNECT_INITIAL_DELAY_MS"
            )
        return self


# Singleton: import this everywhere
settings = Settings()
