import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from shared.constants import (
    DEFAULT_API_URL,
    DEFAULT_CONFIG_DIR,
    DEFAULT_NETWORK_TIMEOUT,
    DEFAULT_SYNC_WORKERS,
)

load_dotenv()

# App Configuration
APP_NAME = "Soundstage"
VERSION = "1.0.0"

# Backend
API_URL = os.getenv("SOUNDSTAGE_API_URL", DEFAULT_API_URL)
REQUEST_TIMEOUT = float(os.getenv("SOUNDSTAGE_TIMEOUT", DEFAULT_NETWORK_TIMEOUT))

# Paths
CONFIG_DIR = Path(os.getenv("SOUNDSTAGE_CONFIG_DIR", DEFAULT_CONFIG_DIR)).expanduser()

# Optimistic sync worker threads
SYNC_WORKERS = int(os.getenv("SOUNDSTAGE_SYNC_WORKERS", DEFAULT_SYNC_WORKERS))

LOG_LEVEL = os.getenv("SOUNDSTAGE_LOG_LEVEL", "WARNING").upper()


@dataclass
class ClientSettings:
    """Runtime settings handed to the API client and synchronizers."""
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_NETWORK_TIMEOUT
    config_dir: Path = Path(DEFAULT_CONFIG_DIR).expanduser()
    sync_workers: int = DEFAULT_SYNC_WORKERS
    log_level: str = "WARNING"

    def __post_init__(self):
        self.api_url = self.api_url.rstrip("/")
        self.timeout = max(1.0, float(self.timeout))
        self.sync_workers = max(1, int(self.sync_workers))
        self.config_dir = Path(self.config_dir).expanduser()

    @classmethod
    def from_env(cls) -> 'ClientSettings':
        """Settings from environment variables (and a .env file if present)."""
        return cls(
            api_url=API_URL,
            timeout=REQUEST_TIMEOUT,
            config_dir=CONFIG_DIR,
            sync_workers=SYNC_WORKERS,
            log_level=LOG_LEVEL,
        )
