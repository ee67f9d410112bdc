"""Application configuration with startup validation.

All config is validated at import time via pydantic-settings.
Missing required values cause an immediate, clear error.
In live mode, LibreLinkUp account credentials are required.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "GS_", "env_file": ".env"}

    # Service mode: "fixture" or "live"
    adapter_mode: str = "fixture"

    # LibreLinkUp
    libre_base_url: str = "https://api-us.libreview.io"
    libre_product: str = "llu.ios"
    libre_app_version: str = "4.7.0"
    libre_locale: str = "en-US"
    libre_username: str = ""
    libre_password: str = ""
    request_timeout_seconds: float = 60.0

    # Session
    reauth_on_expiry: bool = True

    # Fixture mode: directory holding canned vendor payloads
    fixture_dir: str = ""

    # API
    api_version: str = "v1"
    default_reading_count: int = 12
    max_reading_count: int = 288

    # Caller-side retry
    retry_max_attempts: int = 3
    retry_max_wait_seconds: int = 30

    @model_validator(mode="after")
    def validate_live_mode_secrets(self) -> "Settings":
        """Fail fast at startup if live mode is selected but credentials are missing."""
        if self.adapter_mode == "live":
            missing = []
            if not self.libre_username:
                missing.append("GS_LIBRE_USERNAME")
            if not self.libre_password:
                missing.append("GS_LIBRE_PASSWORD")
            if missing:
                raise ValueError(
                    f"adapter_mode='live' requires LibreLinkUp credentials. "
                    f"Missing: {', '.join(missing)}"
                )
        return self


settings = Settings()
