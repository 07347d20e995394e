"""Nexora Auth — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Database ──────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./nexora_auth.db"

    # ── One-time passwords ────────────────────────────────
    otp_ttl_seconds: int = 300
    otp_cooldown_seconds: int = 60
    otp_max_attempts: int = 3
    otp_sweep_interval_seconds: int = 300

    # ── Rate limiting ─────────────────────────────────────
    rate_limit_window_ms: int = 900_000  # 15 minutes
    rate_limit_max_requests: int = 100

    # ── Email (SMTP) ──────────────────────────────────────
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = "noreply@nexorabanking.com"

    # ── App ───────────────────────────────────────────────
    app_name: str = "Nexora Auth"
    environment: str = "development"
    debug: bool = True
    debug_secret: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def email_delivery_enabled(self) -> bool:
        """Development logs codes instead of mailing them."""
        return not self.is_development

    @property
    def diagnostics_enabled(self) -> bool:
        return self.is_development or bool(self.debug_secret)


# Singleton settings instance
settings = Settings()
