from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    api_server: str = "remote"
    api_base_url: str = ""

    retry_max_retries: int = 3
    retry_base_delay_seconds: float = 2.0

    customer_pacing_seconds: float = 0.5

    output_filename: str = "processed_documents.xlsx"
