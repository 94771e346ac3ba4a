import os
from enum import StrEnum
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    development = "development"
    testing = "testing"
    production = "production"


env = Environment(os.getenv("ANPR_ENV", Environment.development))
env_file = ".env.testing" if env == Environment.testing else ".env"


class Settings(BaseSettings):
    ENV: Environment = Environment.development
    SQLALCHEMY_DEBUG: bool = False
    LOG_LEVEL: str = "DEBUG"
    LOGFIRE_TOKEN: str | None = None

    # Server, camera units are configured to push to this port
    HOST: str = "0.0.0.0"
    PORT: int = 9001

    # Database
    DATABASE_PATH: Path = Path("events.db")
    DATABASE_COMMAND_TIMEOUT_SECONDS: float = 30.0

    # Attachments
    UPLOAD_DIR: Path = Path("uploads")
    UPLOAD_URL_PREFIX: str = "/uploads"
    ATTACHMENT_MAX_SIZE: int = 10 * 1024 * 1024  # 10 MiB
    ATTACHMENT_ALLOWED_MIME_TYPES: list[str] = ["image/jpeg"]
    ATTACHMENT_FILENAME_POLICY: Literal["synthesized", "original"] = "synthesized"

    # Dashboard
    DASHBOARD_EVENT_LIMIT: int = 100

    model_config = SettingsConfigDict(
        env_prefix="anpr_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_file=env_file,
        extra="allow",
    )

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.DATABASE_PATH}"

    def is_environment(self, environments: set[Environment]) -> bool:
        return self.ENV in environments

    def is_development(self) -> bool:
        return self.is_environment({Environment.development})

    def is_testing(self) -> bool:
        return self.is_environment({Environment.testing})


settings = Settings()
