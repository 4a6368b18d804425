"""Configuration management for circulation.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path
    busy_timeout: float  # seconds a writer waits on a locked database

    # Lending
    return_backfill: bool  # synthesize a closed record when no open one exists

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "CIRCULATION_DB_PATH",
            str(Path.home() / ".circulation" / "circulation.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            busy_timeout=float(os.environ.get("CIRCULATION_BUSY_TIMEOUT", "30.0")),
            return_backfill=(
                os.environ.get("CIRCULATION_RETURN_BACKFILL", "true").strip().lower()
                in _TRUTHY
            ),
            log_level=os.environ.get("CIRCULATION_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        # Check database directory is writable
        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.busy_timeout <= 0:
            errors.append(f"Busy timeout must be positive, got {self.busy_timeout}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
