from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "sqlite:///./fleet.db"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # CORS - storefront and admin frontends
    cors_origins: list[str] = ["http://localhost:3000", "https://fleetapp.me"]

    # Back office access
    admin_api_key: str = ""
    admin_api_key_salt: str = "fleet-admin-key-salt"

    # Banner scheduling
    banner_override_window_hours: int = 24
    banner_reconcile_hour: int = 0  # UTC hour for the daily status run

    # Redis / Celery
    redis_url: str = ""
    celery_broker_url: str = ""
    celery_result_backend: str = ""

    # Email
    email_provider: str = "smtp"  # "smtp" or "sendgrid"
    sendgrid_api_key: str = ""
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from_address: str = "noreply@fleetapp.me"
    email_from_name: str = "Fleet"
    operator_email: str = ""  # receives reconciliation error reports

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_deployed(self) -> bool:
        return self.environment.lower() in ("production", "staging")

    @property
    def effective_celery_broker(self) -> str:
        return self.celery_broker_url or self.redis_url or "memory://"

    @property
    def effective_celery_backend(self) -> str:
        return self.celery_result_backend or self.redis_url or "cache+memory://"

    def validate_production(self) -> None:
        """Raise if production is using insecure defaults."""
        if self.is_production and not self.admin_api_key:
            raise ValueError("ADMIN_API_KEY must be set in production")
        if self.is_production and self.admin_api_key_salt == "fleet-admin-key-salt":
            raise ValueError("ADMIN_API_KEY_SALT must be changed from the default in production")
        if self.is_production and not self.redis_url:
            raise ValueError("REDIS_URL must be set in production")
        if not 0 <= self.banner_reconcile_hour <= 23:
            raise ValueError("BANNER_RECONCILE_HOUR must be between 0 and 23")
        if self.banner_override_window_hours < 0:
            raise ValueError("BANNER_OVERRIDE_WINDOW_HOURS must not be negative")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
