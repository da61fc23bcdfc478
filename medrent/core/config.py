from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    MAX_RENTAL_DAYS: int = 365
    DEPOSIT_RATE: float = 0.30
    CROSS_BRANCH_ENABLED: bool = True
    CROSS_BRANCH_DELIVERY_FEE: int = 150
    EXTENSION_OPTIONS_DAYS: list[int] = [7, 14, 30]

    SUPABASE_URL: str | None = None
    SUPABASE_API_KEY: str | None = None
    BACKEND_TIMEOUT_SECONDS: float = 10.0

    WORKFLOW_DATA_DIR: str = "./data/workflows"


settings = Settings()
