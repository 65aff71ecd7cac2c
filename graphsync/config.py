"""Editor settings, read from the environment (and a .env file if present)."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel

# load environment variables
load_dotenv()


class EditorSettings(BaseModel):
    server_url: str = "http://localhost:8006/api"
    timeout: float = 10.0
    pass_data_to_beads: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "EditorSettings":
        """Build settings from ``GRAPHSYNC_*`` variables, falling back to defaults."""
        defaults = cls()
        return cls(
            server_url=os.getenv("GRAPHSYNC_SERVER_URL", defaults.server_url),
            timeout=float(os.getenv("GRAPHSYNC_TIMEOUT", defaults.timeout)),
            pass_data_to_beads=os.getenv("GRAPHSYNC_PASS_DATA_TO_BEADS", "true").lower() == "true",
            log_level=os.getenv("GRAPHSYNC_LOG_LEVEL", defaults.log_level),
            log_json=os.getenv("GRAPHSYNC_LOG_JSON", "false").lower() == "true",
        )
