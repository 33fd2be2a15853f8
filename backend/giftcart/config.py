from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    # identity forwarded by the upstream auth layer
    HOST_ID_HEADER: str = "X-Host-Id"

    STORE_CURRENCY: str = "GHS"
    CART_CACHE_SECONDS: int = 30
    CART_CACHE_MAX_ENTRIES: int = 1024

    SCHEDULER_ENABLED: bool = True
    CART_ABANDON_AFTER_SECONDS: int = 30 * 24 * 3600
    CART_EXPIRY_INTERVAL_SECONDS: int = 3600

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
