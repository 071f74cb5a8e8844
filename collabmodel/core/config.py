from functools import lru_cache
from typing import List

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str
    db_echo: bool = False

    # Секреты токенов доступа и обновления должны различаться
    access_token_secret: str
    refresh_token_secret: str
    jwt_algorithm: str = "HS512"
    access_token_ttl_minutes: int = 20
    refresh_token_ttl_days: int = 90

    # Через сколько минут бездействия блокировка проекта считается устаревшей
    in_use_timeout_minutes: int = 10

    password_schemes: List[str] = ["bcrypt"]

    query_engine_url: str = "http://localhost:7000"
    query_engine_timeout_seconds: float = 30.0

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("access_token_secret", "refresh_token_secret")
    @classmethod
    def validate_secret(cls, v):
        if not v or not v.strip():
            raise ValueError("Token secret must not be empty")
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_algorithm(cls, v):
        if v not in ("HS256", "HS384", "HS512"):
            raise ValueError("Only symmetric HMAC algorithms are supported")
        return v

    @model_validator(mode="after")
    def validate_distinct_secrets(self):
        if self.access_token_secret == self.refresh_token_secret:
            raise ValueError("Access and refresh token secrets must differ")
        return self


@lru_cache
def get_settings() -> Settings:
    """Настройки процесса, читаются один раз при старте"""
    return Settings()
