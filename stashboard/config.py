"""Stashboard client configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Client settings loaded from environment variables / .env file."""

    # ── Stashboard ──
    stashboard_base_url: str = ""
    stashboard_oauth_token: str = ""
    stashboard_oauth_secret: str = ""

    # ── HTTP ──
    http_timeout: float = 30.0  # seconds
    allow_insecure_http: bool = False  # local test servers only

    # ── App ──
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
