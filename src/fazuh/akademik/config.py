import os
from pathlib import Path
from typing import Self

from dotenv import load_dotenv
from loguru import logger

from fazuh.akademik.error import ConfigError


class Config:
    """Application configuration manager.

    Handles loading and validation of environment variables and configuration settings
    for the Akademik client, including the backend location, session storage,
    monitoring interval, and output directories.
    """

    _instance: Self | None = None

    def load(self):
        """Load environment variables

        The priority is .env file > environment variables
        See .env-example for the available variables
        """
        load_dotenv()

        api_url = os.getenv("API_URL", "http://localhost:8000").rstrip("/")
        if not api_url.startswith(("http://", "https://")):
            logger.error(f"Invalid API_URL: {api_url}. Falling back to http://localhost:8000.")
            api_url = "http://localhost:8000"

        # Backend
        self.api_url = api_url
        self.api_timeout = self._to_float("API_TIMEOUT", os.getenv("API_TIMEOUT", "30"))

        # Session (token and user identity)
        self.session_file = Path(os.getenv("SESSION_FILE", "data/session.json"))
        self.login = os.getenv("LOGIN")
        self.password = os.getenv("PASSWORD")

        # System monitoring
        self.monitor_interval = self._to_float(
            "MONITOR_INTERVAL", os.getenv("MONITOR_INTERVAL", "1")
        )
        if self.monitor_interval <= 0:
            raise ConfigError("MONITOR_INTERVAL must be greater than zero.")

        # Backup and export
        self.backup_dir = Path(os.getenv("BACKUP_DIR", "backups"))
        self.export_dir = Path(os.getenv("EXPORT_DIR", "exports"))
        self.export_semester = os.getenv("EXPORT_SEMESTER", "2023/2024")

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)

            cls._instance.load()
        return cls._instance

    @property
    def api_base_url(self) -> str:
        return f"{self.api_url}/api"

    @staticmethod
    def _to_float(name: str, value: str) -> float:
        try:
            return float(value)
        except ValueError:
            raise ConfigError(f"{name} must be a number, got {value!r}.")
