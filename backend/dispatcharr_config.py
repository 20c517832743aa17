#!/usr/bin/env python3
"""
Dispatcharr connection settings for the API channel source.

Each setting is resolved with priority:
1. Environment variable (override)
2. JSON configuration file (CONFIG_DIR/dispatcharr_config.json)
"""

import json
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Any

from logging_config import setup_logging

logger = setup_logging(__name__)

CONFIG_DIR = Path(os.environ.get('CONFIG_DIR', '/app/data'))
DISPATCHARR_CONFIG_FILE = CONFIG_DIR / 'dispatcharr_config.json'

# setting name -> environment variable overriding it
_ENV_OVERRIDES = {
    'base_url': 'DISPATCHARR_BASE_URL',
    'username': 'DISPATCHARR_USER',
    'password': 'DISPATCHARR_PASS',
}


class DispatcharrConfig:
    """Read-only view of the Dispatcharr connection settings."""

    def __init__(self, config_file: Optional[Path] = None):
        self._lock = threading.Lock()
        self.config_file = Path(config_file) if config_file else DISPATCHARR_CONFIG_FILE
        self._config: Dict[str, Any] = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            logger.info("No Dispatcharr configuration file, using environment only")
            return {}
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading Dispatcharr configuration: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error("Dispatcharr configuration must be a JSON object")
            return {}
        logger.info("Loaded Dispatcharr configuration from file")
        return data

    def _get(self, key: str) -> Optional[str]:
        env_value = os.getenv(_ENV_OVERRIDES[key])
        if env_value:
            return env_value
        with self._lock:
            return self._config.get(key)

    def get_base_url(self) -> Optional[str]:
        """Base URL without a trailing slash, or None if not configured."""
        base_url = self._get('base_url')
        return base_url.rstrip('/') if base_url else None

    def get_username(self) -> Optional[str]:
        return self._get('username')

    def get_password(self) -> Optional[str]:
        return self._get('password')

    def is_configured(self) -> bool:
        """True when base URL, username and password are all present."""
        return all([
            self.get_base_url(),
            self.get_username(),
            self.get_password()
        ])


_dispatcharr_config: Optional[DispatcharrConfig] = None
_config_lock = threading.Lock()


def get_dispatcharr_config() -> DispatcharrConfig:
    """Get the global Dispatcharr configuration singleton instance."""
    global _dispatcharr_config
    with _config_lock:
        if _dispatcharr_config is None:
            _dispatcharr_config = DispatcharrConfig()
        return _dispatcharr_config
