from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Donor Alert API", alias="APP_NAME")
    app_env: str = Field(default="local", alias="APP_ENV")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    database_url: str = Field(
        default="sqlite+pysqlite:///./donoralert.db",
        alias="DATABASE_URL",
    )
    # comma-separated, e.g. "https://a.example,https://b.example"
    allowed_origins: str = Field(default="*", alias="ALLOWED_ORIGINS")

    # Twilio SMS transport
    twilio_account_sid: str | None = Field(default=None, alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: str | None = Field(default=None, alias="TWILIO_AUTH_TOKEN")
    twilio_phone_number: str | None = Field(default=None, alias="TWILIO_PHONE_NUMBER")
    twilio_api_base: str = Field(default="https://api.twilio.com", alias="TWILIO_API_BASE")
    sms_timeout_s: float = Field(default=10.0, alias="SMS_TIMEOUT_S")
    dispatch_max_workers: int = Field(default=8, alias="DISPATCH_MAX_WORKERS")

    # Shared secret hospitals present when sending alerts
    hospital_alert_password: str | None = Field(default=None, alias="HOSPITAL_ALERT_PASSWORD")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
