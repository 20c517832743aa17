#!/usr/bin/env python3
"""
Channel sources configuration.

Reads CONFIG_DIR/channel_sources.json:

    {
        "sources": {
            "main": {"type": "ace", "label": "Main", "url": "http://...", "update_interval": 600}
        },
        "groups": [{"id": "sport", "name": "Sport", "aliases": ["Sports"]}],
        "default_sources": ["main"]
    }

Source types are not checked here; ChannelSources rejects unknown ones when
it builds its workers.
"""

import json
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Any

from dotenv import load_dotenv

from logging_config import setup_logging

from channel_sources.exceptions import ConfigurationError
from channel_sources.models import (
    DEFAULT_UPDATE_INTERVAL,
    ChannelGroup,
    ChannelSourceConfig,
    build_groups_map,
)

logger = setup_logging(__name__)

env_path = Path('.') / '.env'
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

CONFIG_DIR = Path(os.environ.get('CONFIG_DIR', '/app/data'))
SOURCES_CONFIG_FILE = CONFIG_DIR / 'channel_sources.json'


def _default_update_interval() -> float:
    value = os.getenv('CHANNEL_SOURCES_UPDATE_INTERVAL')
    if not value:
        return DEFAULT_UPDATE_INTERVAL
    try:
        interval = float(value)
    except ValueError:
        raise ConfigurationError(f"CHANNEL_SOURCES_UPDATE_INTERVAL must be a number, got {value!r}") from None
    if interval <= 0:
        raise ConfigurationError("CHANNEL_SOURCES_UPDATE_INTERVAL must be positive")
    return interval


def parse_sources_config(data: Any) -> Dict[str, Any]:
    """Validate raw configuration data.

    Returns:
        Dictionary with 'sources' (name -> ChannelSourceConfig, in file order),
        'groups' (list of ChannelGroup) and 'default_sources' (list of names)

    Raises:
        ConfigurationError: If the data has the wrong shape
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Channel sources configuration must be a JSON object")

    raw_sources = data.get('sources', {})
    if not isinstance(raw_sources, dict):
        raise ConfigurationError("'sources' must be an object keyed by source name")

    default_interval = _default_update_interval()
    sources: Dict[str, ChannelSourceConfig] = {}
    for name, entry in raw_sources.items():
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Source '{name}' must be an object")
        entry = {'update_interval': default_interval, **entry}
        interval = entry['update_interval']
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
            raise ConfigurationError(f"Source '{name}': update_interval must be a positive number")
        sources[name] = ChannelSourceConfig.from_dict(name, entry)

    raw_groups = data.get('groups', [])
    if not isinstance(raw_groups, list):
        raise ConfigurationError("'groups' must be a list")
    groups = [ChannelGroup.from_dict(g) for g in raw_groups if isinstance(g, dict)]

    default_sources = data.get('default_sources')
    if default_sources is None:
        default_sources = list(sources)
    elif not isinstance(default_sources, list):
        raise ConfigurationError("'default_sources' must be a list of source names")

    return {
        'sources': sources,
        'groups': groups,
        'default_sources': [str(name) for name in default_sources]
    }


class SourcesConfig:
    """Loads and serves the channel sources configuration."""

    def __init__(self, config_file: Optional[Path] = None):
        """Load the configuration file.

        Raises:
            ConfigurationError: If the file exists but is invalid
        """
        self._lock = threading.Lock()
        self.config_file = Path(config_file) if config_file else SOURCES_CONFIG_FILE
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            logger.warning(f"No channel sources configuration at {self.config_file}")
            return parse_sources_config({})

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {self.config_file}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read {self.config_file}: {e}") from e

        config = parse_sources_config(data)
        logger.info(
            f"Loaded {len(config['sources'])} channel sources and "
            f"{len(config['groups'])} groups from {self.config_file}"
        )
        return config

    def get_source_configs(self) -> Dict[str, ChannelSourceConfig]:
        with self._lock:
            return dict(self._config['sources'])

    def get_groups(self) -> List[ChannelGroup]:
        with self._lock:
            return list(self._config['groups'])

    def get_groups_map(self) -> Dict[str, ChannelGroup]:
        """Group label -> group, covering names and aliases."""
        return build_groups_map(self.get_groups())

    def get_default_sources(self) -> List[str]:
        with self._lock:
            return list(self._config['default_sources'])

    def get_config(self) -> Dict[str, Any]:
        """Configuration as JSON-serializable data."""
        with self._lock:
            return {
                'sources': {name: c.to_dict() for name, c in self._config['sources'].items()},
                'groups': [g.to_dict() for g in self._config['groups']],
                'default_sources': list(self._config['default_sources'])
            }


_sources_config: Optional[SourcesConfig] = None
_config_lock = threading.Lock()


def get_sources_config() -> SourcesConfig:
    """Get the global sources configuration singleton instance."""
    global _sources_config
    with _config_lock:
        if _sources_config is None:
            _sources_config = SourcesConfig()
        return _sources_config
