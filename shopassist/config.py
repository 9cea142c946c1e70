from pathlib import Path
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    ANTHROPIC_API_KEY: str = ""             # empty disables the model resolver
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"
    USE_MODEL_RESOLVER: bool = True
    LLM_TIMEOUT_SECONDS: float = 10.0
    LLM_MAX_TOKENS: int = 300

    CATALOG_API_URL: str = "https://fakestoreapi.com/products"
    CATALOG_TIMEOUT_SECONDS: float = 10.0
    CATALOG_CACHE_SECONDS: int = 300
    USD_TO_INR: float = 80.0
    PRODUCTS_FILE: str = str(BASE_DIR / "data" / "products.json")

    SESSION_TTL_SECONDS: int = 3600
    SESSION_SWEEP_INTERVAL_SECONDS: int = 300
    MAX_CONVERSATION_TURNS: int = 50

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: str = "*"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]


settings = Settings()
