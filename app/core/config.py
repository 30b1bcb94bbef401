from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from backend project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = True

    # Hosted auth provider tokens (verification only)
    auth_jwt_secret: str = ""
    auth_jwt_algorithm: str = "HS256"
    admin_emails: str = ""

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Google Calendar (token refresh)
    google_client_id: str = ""
    google_client_secret: str = ""
    google_calendar_timeout_seconds: float = 10.0

    # Availability defaults; admins edit the real values in the settings table
    default_timezone: str = "America/Los_Angeles"
    default_service_duration_minutes: int = 60
    default_override_open_time: str = "11:00"
    default_override_close_time: str = "21:00"

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "Salon"
    email_logo_url: str = ""
    site_name: str = "Salon"
    contact_email: str = ""
    contact_phone: str = ""
    contact_address: str = ""

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def admin_emails_list(self) -> list[str]:
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)


settings = Settings()
