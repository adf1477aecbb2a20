"""Configuration management for srcscope.

Loads environment variables and provides centralized config access.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

__version__ = "1.0.0"


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self):
        """Initialize config by loading .env file."""
        # Load .env from project root
        project_root = Path(__file__).parent.parent.parent
        env_path = project_root / ".env"
        load_dotenv(env_path)

    @property
    def db_name(self) -> str:
        """Get the symbol store file name (created under each project root).

        Returns:
            File name of the store, hidden by default
        """
        return os.getenv("SRCSCOPE_DB_NAME", ".sourceviewer.db")

    @property
    def options_file(self) -> str:
        """Get the defines (build options) file name.

        Returns:
            File name looked up under the project root when no path is given
        """
        return os.getenv("SRCSCOPE_OPTIONS_FILE", "rtecdc.opt")

    @property
    def defines_section(self) -> str:
        """Get the options file section that carries -D flags.

        Returns:
            Section name without brackets
        """
        return os.getenv("SRCSCOPE_DEFINES_SECTION", "CFLAGS_sort")

    @property
    def fold_inactive(self) -> bool:
        """Whether inactive conditional blocks are folded by default."""
        return os.getenv("SRCSCOPE_FOLD_INACTIVE", "0").strip().lower() in ("1", "true", "yes", "on")

    @property
    def log_level(self) -> str:
        """Get the loguru level name.

        Returns:
            Upper-cased level name (DEBUG, INFO, WARNING, ERROR)
        """
        return os.getenv("SRCSCOPE_LOG_LEVEL", "WARNING").upper()


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached Config so the next get_config() re-reads the environment."""
    global _config
    _config = None
