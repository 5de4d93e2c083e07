"""Application configuration using Pydantic Settings."""
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_name: str = "School Attendance"
    debug: bool = False
    school_name: str = ""

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "attendance"

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60
    jwt_refresh_token_expire_days: int = 30

    # Seeded admin account
    admin_email: str = "admin@school.mu"
    admin_password: str = "change-me"
    admin_full_name: str = "School Admin"

    # Attendance rules
    trend_window_days: int = 30
    retention_days: int = 30  # recycle bin grace period before hard delete

    # Notifications
    country_calling_code: str = "230"  # Mauritius
    notification_batch_size: int = 5
    notifications_simulate: bool = True  # log instead of calling providers

    # Twilio (SMS / WhatsApp)
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_sms_from: str = ""
    twilio_whatsapp_from: str = ""

    # AWS SES (email)
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "eu-west-1"
    ses_sender_email: str = ""

    # CORS (comma-separated origins, e.g. "https://attendance.school.mu,http://localhost:5173")
    cors_origins: str = "http://localhost:5173"

    @model_validator(mode="after")
    def _validate_production_secrets(self):
        if not self.debug:
            if self.jwt_secret_key in ("change-me-in-production", ""):
                raise ValueError(
                    "JWT_SECRET_KEY must be set to a strong secret when DEBUG is not enabled. "
                    "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
                )
        return self


settings = Settings()
