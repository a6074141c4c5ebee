from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./booktracker.db"
    JWT_SECRET: Optional[str] = None
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 10

    # Connection pool
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: int = 30

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    FRONTEND_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    @property
    def allow_origins(self) -> List[str]:
        return [origin.strip() for origin in self.FRONTEND_ORIGINS.split(",") if origin.strip()]

    def require_secret(self) -> str:
        if not self.JWT_SECRET or not self.JWT_SECRET.strip():
            raise RuntimeError("JWT_SECRET is missing. Set it in the environment or .env")
        return self.JWT_SECRET

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
