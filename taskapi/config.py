import logging
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "dev-secret"


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def _database_url() -> str:
    url = os.getenv("DATABASE_URL", "").strip()
    if url:
        return normalize_database_url(url)
    host = os.getenv("DATABASE_HOST")
    if host:
        return "postgresql://{user}:{password}@{host}:{port}/{name}".format(
            user=os.getenv("DATABASE_USERNAME", "todoapp"),
            password=os.getenv("DATABASE_PASSWORD", "todoapp123"),
            host=host,
            port=os.getenv("DATABASE_PORT", "5432"),
            name=os.getenv("DATABASE_NAME", "todoapp_db"),
        )
    return "sqlite:///./tasks.db"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./tasks.db"
    skip_db_connection: bool = False
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440
    bcrypt_rounds: int = 12
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


def get_settings() -> Settings:
    """Build settings from the environment (and an optional .env file)."""
    load_dotenv()

    settings = Settings(
        database_url=_database_url(),
        skip_db_connection=_flag(os.getenv("SKIP_DB_CONNECTION", "false")),
        jwt_secret=os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440")),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
        api_prefix=os.getenv("API_PREFIX", "/api/v1").rstrip("/"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    )
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is not set, using the development default")
    return settings
