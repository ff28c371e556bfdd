"""
Configuration for the restarter.

Loads defaults from environment variables (and a .env file, if present).
Command-line flags override the supervision defaults.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    """Restarter configuration."""

    # Supervision defaults
    check_interval: int = int(os.environ.get("RESTARTER_CHECK_INTERVAL", "5000"))  # ms
    max_retries: int = int(os.environ.get("RESTARTER_MAX_RETRIES", "-1"))

    # Process management
    startup_grace: int = int(os.environ.get("RESTARTER_STARTUP_GRACE", "100"))  # ms
    kill_timeout: float = float(os.environ.get("RESTARTER_KILL_TIMEOUT", "10"))

    # Health checks
    http_timeout: float = float(os.environ.get("RESTARTER_HTTP_TIMEOUT", "10"))

    # Logging
    log_level: str = os.environ.get("LOG_LEVEL", "INFO")
    log_file: str = os.environ.get("LOG_FILE", "")
    log_max_bytes: int = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10MB
    log_backup_count: int = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

    @property
    def startup_grace_seconds(self) -> float:
        return self.startup_grace / 1000


config = Config()
