"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Remote society API
    api_base_url: str = "http://localhost:3000/api"
    environment: str = "development"  # development | staging | production
    test_otp: str = "123456"

    # Persisted session (token + cached user)
    database_url: str = "sqlite:///./society_portal.db"

    # Service
    service_name: str = "society-portal"
    log_level: str = "INFO"
    host_base_url: str = "http://localhost:8000"
    dashboard_path: str = "/dashboard"
    onboarding_landing_path: str = "/profile"

    # HTTP Client
    http_timeout_seconds: float = 10.0

    # Payment gateway checkout
    gateway_script_url: str = "https://checkout.razorpay.com/v1/checkout.js"
    default_currency: str = "INR"
    merchant_name: str = "Society Portal"
    checkout_theme_color: str = "#2563eb"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()
