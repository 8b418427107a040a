"""Configuration loader for the account rotator

Loads configuration from multiple sources with the following priority:
1. Environment variables (highest priority)
2. .env file
3. Hardcoded defaults (lowest priority)
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUE_VALUES = ('true', '1', 'yes', 'on')


class ConfigLoader:
    """Resolves settings from the environment, a .env file and defaults"""

    def __init__(self, env_path: Optional[str] = None):
        """Initialize the config loader

        Args:
            env_path: Optional path to .env file.
                     Defaults to '.env' in the current directory.
        """
        self.env_path = Path(env_path) if env_path else Path(".env")
        self._load_env_file()

    def _load_env_file(self):
        """Load environment variables from .env file if it exists"""
        if self.env_path.exists():
            # Real environment variables keep precedence over the file
            load_dotenv(dotenv_path=self.env_path, override=False)
            logger.debug(f"Loaded environment variables from {self.env_path}")
        else:
            logger.debug(f".env file not found at {self.env_path}, using environment and defaults only")

    def get(self, env_var: str, default: Any) -> Any:
        """Get a configuration value, coerced to the type of the default

        Args:
            env_var: Environment variable name to check
            default: Default value if not found in environment

        Returns:
            The configuration value from environment or default
        """
        env_value = os.getenv(env_var)
        if env_value is None or env_value == "":
            return self._expand(default)
        return self._coerce(env_var, env_value, default)

    def get_path(self, env_var: str, default: Path) -> Path:
        """Get a filesystem path setting with ~ expanded"""
        return Path(str(self.get(env_var, str(default)))).expanduser()

    @staticmethod
    def _expand(value: Any) -> Any:
        if isinstance(value, str) and value.startswith("~/"):
            return str(Path(value).expanduser())
        return value

    def _coerce(self, env_var: str, raw: str, default: Any) -> Any:
        # bool must be checked before int since bool is an int subclass
        if isinstance(default, bool):
            return raw.strip().lower() in _TRUE_VALUES
        for number_type in (int, float):
            if isinstance(default, number_type):
                try:
                    return number_type(raw)
                except ValueError:
                    logger.warning(
                        f"Failed to parse {env_var}={raw} as {number_type.__name__}, using default: {default}"
                    )
                    return default
        return self._expand(raw)


_config_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Get or create the global ConfigLoader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def reset_config_loader() -> None:
    """Forget the global ConfigLoader so the next call re-reads .env"""
    global _config_loader
    _config_loader = None
