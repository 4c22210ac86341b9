"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./credit_committee.db"

    # Service
    service_name: str = "credit-committee"
    log_level: str = "INFO"

    # Committee
    history_limit: int = 20  # audit events returned per dossier
    default_project_type: str = "baseline"  # document catalog for unknown project types


settings = Settings()
