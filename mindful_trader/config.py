"""
Configuration management for The Mindful Trader.

Loads settings from config.yaml and environment variables.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_FILE = PROJECT_ROOT / "config.yaml"


def get_config_file() -> Path:
    """Resolve the config file, honouring MINDFUL_CONFIG."""
    override = os.getenv("MINDFUL_CONFIG", "").strip()
    return Path(override) if override else CONFIG_FILE


def load_config() -> dict[str, Any]:
    """Load configuration from YAML file."""
    config_file = get_config_file()
    if config_file.exists():
        with open(config_file, "r") as f:
            return yaml.safe_load(f) or get_default_config()
    return get_default_config()


def get_default_config() -> dict[str, Any]:
    """Return default configuration if config.yaml doesn't exist."""
    return {
        "timezone": "America/New_York",
        "logging": {
            "level": "INFO",
        },
        "analytics": {
            "avoid_patterns": {
                "min_trades": 10,
                "max_win_rate": 40.0,
            },
            "best_worst_times": {
                "min_trades": 5,
                "limit": 5,
            },
            # Ordered: the first sector whose keyword matches wins.
            "sector_keywords": {
                "technology": ["tech", "technology", "software", "semiconductor"],
                "healthcare": ["healthcare", "health", "biotech", "pharma", "pharmaceutical"],
                "financial": ["financial", "finance", "bank", "insurance"],
                "energy": ["energy", "oil", "gas"],
                "consumer": ["consumer", "retail", "discretionary", "staples"],
                "industrial": ["industrial", "manufacturing"],
                "materials": ["materials", "commodity", "commodities"],
                "utilities": ["utilities", "utility"],
                "real estate": ["real estate", "reit"],
                "communication": ["communication", "telecom", "media"],
            },
        },
    }


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to YAML file."""
    with open(get_config_file(), "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


class Settings:
    """Application settings singleton."""

    _instance = None
    _config: dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._config = load_config()
        return cls._instance

    def reload(self) -> None:
        """Reload configuration from file."""
        self._config = load_config()

    @property
    def timezone(self) -> str:
        # Check environment first, then config file
        env_tz = os.getenv("TIMEZONE")
        if env_tz:
            return env_tz
        return self._config.get("timezone", "America/New_York")

    @property
    def log_level(self) -> str:
        env_level = os.getenv("LOG_LEVEL")
        if env_level:
            return env_level.upper()
        return str(self.get("logging.level", "INFO")).upper()

    @property
    def avoid_min_trades(self) -> int:
        return int(self.get("analytics.avoid_patterns.min_trades", 10))

    @property
    def avoid_max_win_rate(self) -> float:
        return float(self.get("analytics.avoid_patterns.max_win_rate", 40.0))

    @property
    def ranking_min_trades(self) -> int:
        return int(self.get("analytics.best_worst_times.min_trades", 5))

    @property
    def ranking_limit(self) -> int:
        return int(self.get("analytics.best_worst_times.limit", 5))

    @property
    def sector_keywords(self) -> dict[str, list[str]]:
        """Sector vocabulary used to classify free-text sector context."""
        configured = self.get("analytics.sector_keywords")
        if not configured:
            configured = get_default_config()["analytics"]["sector_keywords"]
        return {
            str(sector).lower(): [str(k).lower() for k in keywords]
            for sector, keywords in configured.items()
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key."""
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default


# Global settings instance
settings = Settings()

