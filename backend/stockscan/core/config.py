"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "StockScan Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Price/fundamentals source database
    database_url: str = "sqlite+aiosqlite:///./data/stockscan.db"

    # CORS (Frontend URL)
    allowed_origins: list[str] = ["http://localhost:5173"]

    # Source query limits
    min_scripcode: int = 267  # scrip codes at or below this are index/test rows
    price_row_limit: int = 50_000
    fundamentals_limit: int = 10_000

    # Engine
    analysis_workers: int = 1  # 1 = sequential

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
