from __future__ import annotations

from pathlib import Path

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

MEMORY_DATABASE = ":memory:"


class Settings(BaseSettings):
    DATABASE_PATH: str = str(Path.home() / ".chat-mirror" / "messages.sqlite")

    # Sender id recorded on locally echoed outgoing messages
    APP_ID: str = ""

    ACK_STATUS: str = "READ"
    STREAM_STOP_GRACE_SECONDS: float = 5.0

    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


def database_url_for(path: str) -> str:
    if path == MEMORY_DATABASE:
        return "sqlite+aiosqlite://"
    return f"sqlite+aiosqlite:///{Path(path).expanduser()}"


settings = Settings()
