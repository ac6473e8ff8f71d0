"""Application settings.

Loaded once from environment variables and the project's ``.env`` file.
"""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from reservation_api import __version__

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/reservations"
DEFAULT_DATABASE_NAME = "reservations"

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))


class Settings(BaseSettings):
    """Application settings."""

    # === Server ===
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3001)
    NODE_ENV: str | None = Field(default=None)
    SHUTDOWN_GRACE_PERIOD: int = Field(default=10)
    MAX_BODY_SIZE: int = Field(default=10 * 1024 * 1024)

    APP_NAME: str = "Reservation Gateway API"
    APP_VERSION: str = __version__
    APP_DESCRIPTION: str = "Reservation, table and notification management API"

    FRONTEND_URL: str = "https://frontendv1-mu.vercel.app"
    BACKEND_URL: str = "https://backendv1-bbin.onrender.com"

    # === Data store ===
    MONGODB_URI: str = Field(default=DEFAULT_MONGODB_URI)
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = Field(default=10000)
    MONGODB_SOCKET_TIMEOUT_MS: int = Field(default=45000)

    # === CORS ===
    CORS_ALLOWED_ORIGINS: list[str] = [
        "https://frontendv1-mu.vercel.app",
        "https://backendv1-bbin.onrender.com",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "https://localhost:5173",
    ]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    CORS_ALLOW_HEADERS: list[str] = ["Content-Type", "Authorization", "Accept", "X-Requested-With"]

    # === Logging ===
    LOG_LEVEL: str = Field(default="INFO")
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE_PATH: str = Field(default=os.path.join(BASE_DIR, "data", "logs", "app.log"))

    @property
    def environment(self) -> str:
        return self.NODE_ENV or "development"

    @property
    def is_development(self) -> bool:
        """Error details are only exposed when NODE_ENV is exactly ``development``."""
        return self.NODE_ENV == "development"

    @property
    def uses_remote_store(self) -> bool:
        return self.MONGODB_URI != DEFAULT_MONGODB_URI

    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
