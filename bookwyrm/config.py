from fastapi import Request
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql://postgres:postgres@db:5432/bookwyrm"
    AUTO_CREATE_TABLES: bool = True
    SECRET_KEY: str = "change_this_secret"
    ALGORITHM: str = "HS256"

    # Session cookie
    SESSION_COOKIE_NAME: str = "__session"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 7
    SESSION_COOKIE_SECURE: bool = False

    # Credentialed CORS, so list origins explicitly rather than "*"
    FRONTEND_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "10/minute"

    PREMIER_REVIEW_THRESHOLD: int = 3
    # Password given to users an admin creates without one
    DEFAULT_USER_PASSWORD: str = "changeme123"

    @property
    def allow_origins(self) -> List[str]:
        return [origin.strip() for origin in self.FRONTEND_ORIGINS.split(",") if origin.strip()]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
