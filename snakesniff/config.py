"""Configuration management for snakesniff.

Loads environment variables (optionally from a .env file in the working
directory) and provides centralized config access.
"""
import os
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

from .analyzer.rules import DEFAULT_RULES, DEFAULT_STANDARD, RulePolicy, resolve_rules

__version__ = "1.0.0"

DEFAULT_EXTENSIONS = "php,inc,module,install,theme"
DEFAULT_EXCLUDE_DIRS = "vendor,node_modules,.git"


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[str | Path] = None):
        """Initialize config by loading a .env file.

        Args:
            env_path: Explicit .env file (defaults to ./.env)

        Raises:
            ValueError: If SNAKESNIFF_RULES names an unknown rule
        """
        load_dotenv(Path(env_path) if env_path else Path.cwd() / ".env")
        self._validate()

    def _validate(self):
        """Validate configured values.

        Raises:
            ValueError: If a rule name is unknown or no extensions are set
        """
        resolve_rules(self.rule_names)
        if not self.extensions:
            raise ValueError("SNAKESNIFF_EXTENSIONS must name at least one extension.")

    @property
    def rule_names(self) -> List[str]:
        """Rule names or aliases enabled by default.

        Returns:
            Names from SNAKESNIFF_RULES, or all rules
        """
        value = os.getenv("SNAKESNIFF_RULES")
        return _split_list(value) if value else list(DEFAULT_RULES)

    @property
    def rules(self) -> List[RulePolicy]:
        return resolve_rules(self.rule_names)

    @property
    def extensions(self) -> List[str]:
        """File extensions to check, normalized to '.ext' form."""
        raw = _split_list(os.getenv("SNAKESNIFF_EXTENSIONS", DEFAULT_EXTENSIONS))
        return [ext.lower() if ext.startswith('.') else f".{ext.lower()}" for ext in raw]

    @property
    def exclude_dirs(self) -> List[str]:
        return _split_list(os.getenv("SNAKESNIFF_EXCLUDE_DIRS", DEFAULT_EXCLUDE_DIRS))

    @property
    def standard(self) -> str:
        """Prefix of finding source codes (e.g. 'SnakeSniff')."""
        return os.getenv("SNAKESNIFF_STANDARD", DEFAULT_STANDARD) or DEFAULT_STANDARD


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


def reset_config():
    """Drop the cached Config so the next get_config() re-reads the environment."""
    global _config
    _config = None
