from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    ENV: str = "dev"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8020

    KEZEKSHI_API_BASE: str = "http://localhost:8000"
    # Application token for public endpoints; generated daily from TOKEN_SECRET when empty
    COMMON_TOKEN: str = ""
    TOKEN_SECRET: str = "123"

    HTTP_CONNECT_TIMEOUT: float = 5
    HTTP_READ_TIMEOUT: float = 25
    RETRY_ATTEMPTS: int = 2

    DATABASE_URL: str = "sqlite:///./kezekshi_dashboard.db"
    BUDGET_BACKEND: str = "local"  # local|remote

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
