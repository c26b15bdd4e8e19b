import json

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_SECRETS = {"", "change_me", "dev-secret-key-change-before-prod"}


def _parse_origin_list(raw) -> list[str]:
    """Accepts a JSON array or a comma separated string from the environment."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.strip()
        if raw.startswith("["):
            raw = json.loads(raw)
            if not isinstance(raw, list):
                raise ValueError("CORS_ORIGINS must be a JSON list or a comma separated string")
        else:
            raw = raw.split(",")
    if not isinstance(raw, list):
        raise ValueError("CORS_ORIGINS must be a JSON list or a comma separated string")
    return [str(origin).strip() for origin in raw if str(origin).strip()]


class Settings(BaseSettings):
    app_name: str = "MyWork Scheduler"
    env: str = "dev"

    # Sessions
    secret_key: str = "dev-secret-key-change-before-prod"
    access_token_expire_minutes: int = Field(default=60, ge=1)
    refresh_token_expire_days: int = Field(default=14, ge=1)
    auth_rate_limit_max_attempts: int = Field(default=5, ge=1)
    auth_rate_limit_window_seconds: int = Field(default=300, ge=1)
    auth_rate_limit_lock_seconds: int = Field(default=900, ge=1)

    # Database; the SQLite file is a local fallback when DATABASE_URL is unset.
    database_url: str = "sqlite:///./mywork.db"
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=20, ge=0, le=200)
    db_pool_timeout_seconds: int = Field(default=30, ge=1, le=300)
    db_pool_recycle_seconds: int = Field(default=1800, ge=30, le=86_400)

    # Public web app and uploads
    app_base_url: str = "http://localhost:3000"
    upload_dir: str = "public/uploads"
    uploads_url_prefix: str = "/uploads"
    invite_expire_days: int = Field(default=7, ge=1, le=30)
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    cors_origin_regex: str | None = None

    # Invite email over SMTP
    smtp_host: str | None = None
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_sender_email: str | None = None
    smtp_reply_to_email: str | None = None
    smtp_use_starttls: bool = True
    smtp_use_ssl: bool = False

    # Alert SMS
    sms_provider_default: str = "twilio"
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_phone_number: str | None = None
    twilio_api_base_url: str = "https://api.twilio.com/2010-04-01"
    alert_recipient_phone: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        enable_decoding=False,
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value):
        return _parse_origin_list(value)

    @field_validator(
        "smtp_host",
        "smtp_username",
        "smtp_password",
        "smtp_sender_email",
        "smtp_reply_to_email",
        "twilio_account_sid",
        "twilio_auth_token",
        "twilio_phone_number",
        "alert_recipient_phone",
        mode="before",
    )
    @classmethod
    def blank_as_unset(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return str(value).strip() or None

    @field_validator("app_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.env.strip().lower() in {"prod", "production"}

    @model_validator(mode="after")
    def refuse_unsafe_production(self) -> "Settings":
        if not self.is_production:
            return self

        problems = []
        secret = self.secret_key.strip()
        if secret in _PLACEHOLDER_SECRETS or len(secret) < 32:
            problems.append("SECRET_KEY needs at least 32 random characters")
        if "*" in self.cors_origins or self.cors_origin_regex:
            problems.append("CORS must list explicit origins (no '*' or CORS_ORIGIN_REGEX)")
        if self.smtp_use_ssl and self.smtp_use_starttls:
            problems.append("SMTP_USE_SSL and SMTP_USE_STARTTLS are mutually exclusive")
        if problems:
            raise ValueError("Unsafe production settings: " + "; ".join(problems))
        return self


settings = Settings()
