"""Engine configuration using pydantic-settings.

Only host-facing concerns are configurable. Reference ranges and the
100-cell differential cap are fixed clinical constants and deliberately
absent here.
"""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Find .env file: check backend dir first, then project root
_BACKEND_DIR = Path(__file__).parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _BACKEND_DIR / ".env" if (_BACKEND_DIR / ".env").exists() else _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Settings loaded from environment variables prefixed with VETLAB_."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="VETLAB_",
        extra="ignore",
    )

    debug: bool = False

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = False

    # Species preselected when a lab exam session starts
    default_species: Literal["perro", "gato"] = "perro"


settings = Settings()
