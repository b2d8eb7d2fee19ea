import copy
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "timezone": "UTC",
    "settings_path": "config/settings.json",
    "espn": {
        "base_url": "https://site.api.espn.com/apis/site/v2/sports",
        "connect_timeout": 10,
        "read_timeout": 30,
        "max_workers": 4,
        "date_window_days": 7,
    },
    "cache": {
        "cache_dir": None,
        "memory_ttl": 60,
        "stale_threshold_hours": 24,
        "prefetch_threshold_hours": 22,
    },
    "selection": {
        "recent_window_hours": 12,
        "capacities": {
            "small": 1,
            "medium": 4,
            "large": 4,
        },
    },
}


class ConfigManager:
    def __init__(self, config_path: str = None):
        # Use current working directory as base
        self.config_path = config_path or "config/config.json"
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

    def get_config_path(self) -> str:
        return self.config_path

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from JSON, layered over the defaults."""
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        if not os.path.exists(self.config_path):
            logger.info(f"No configuration file at {os.path.abspath(self.config_path)}, using defaults")
            return self.config

        try:
            with open(self.config_path, 'r') as f:
                user_config = json.load(f)
        except json.JSONDecodeError:
            logger.error(f"Error parsing configuration file {self.config_path}")
            raise

        if not isinstance(user_config, dict):
            raise ValueError(f"Configuration root must be an object: {self.config_path}")

        self._deep_merge(self.config, user_config)
        logger.info(f"Loaded configuration from {os.path.abspath(self.config_path)}")
        return self.config

    def _deep_merge(self, target: Dict, source: Dict) -> None:
        """Deep merge source dict into target dict."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._deep_merge(target[key], value)
            else:
                target[key] = value

    def get_timezone(self) -> str:
        """Get the configured timezone."""
        return self.config.get('timezone', 'UTC')

    def get_settings_path(self) -> str:
        return self.config.get('settings_path', DEFAULT_CONFIG['settings_path'])

    def get_espn_config(self) -> Dict[str, Any]:
        return self.config.get('espn', {})

    def get_cache_config(self) -> Dict[str, Any]:
        return self.config.get('cache', {})

    def get_selection_config(self) -> Dict[str, Any]:
        return self.config.get('selection', {})

    def get_capacity(self, family: str) -> Optional[int]:
        """Number of games a widget family can show, None for unknown families."""
        capacities = self.get_selection_config().get('capacities', {})
        return capacities.get(family)
