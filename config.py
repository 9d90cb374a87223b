"""Application settings loaded from environment variables."""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from utils.exceptions import ConfigError

DEFAULT_PORT = 5000
SUPPORTED_BACKENDS = ("file", "mongo")


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    """Runtime configuration for the API server."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    storage_backend: str = "file"
    data_dir: str = "data"
    mongo_uri: Optional[str] = None
    db_name: str = "expense_tracker"
    log_level: str = "INFO"
    rate_limit: Optional[str] = None
    static_dir: str = "public"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        self.storage_backend = self.storage_backend.lower()
        if self.storage_backend not in SUPPORTED_BACKENDS:
            raise ConfigError(
                f"Unknown STORAGE_BACKEND '{self.storage_backend}'. "
                f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}"
            )
        if self.storage_backend == "mongo" and not self.mongo_uri:
            raise ConfigError("MONGO_URI must be set when STORAGE_BACKEND is 'mongo'.")

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from the process environment (and a .env file, if any)."""
        if dotenv:
            load_dotenv()  # searches current dir and parents

        raw_port = os.getenv("PORT", str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got '{raw_port}'")

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=port,
            storage_backend=os.getenv("STORAGE_BACKEND", "file"),
            data_dir=os.getenv("DATA_DIR", "data"),
            # MONGODB_URI is the older name, still honoured
            mongo_uri=os.getenv("MONGO_URI") or os.getenv("MONGODB_URI"),
            db_name=os.getenv("DB_NAME", "expense_tracker"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            rate_limit=os.getenv("RATE_LIMIT") or None,
            static_dir=os.getenv("STATIC_DIR", "public"),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")) or ["*"],
        )
