"""
Snapshot storage for channel sources.

Keeps the last successfully refreshed channel list of every source as a JSON
file so a restarted worker can serve it before its upstream answers again.
"""

import json
import os
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any

from logging_config import setup_logging

from channel_sources.models import Channel, ChannelGroup

logger = setup_logging(__name__)

CONFIG_DIR = Path(os.environ.get('CONFIG_DIR', '/app/data'))

_UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9_.-]')


class ChannelRepository:
    """JSON file-based storage of per-source channel snapshots with thread-safe operations."""

    def __init__(self, storage_dir: Optional[Path] = None):
        """Initialize the repository.

        Args:
            storage_dir: Directory for snapshot files.
                        Defaults to CONFIG_DIR/channel_sources/
        """
        if storage_dir is None:
            storage_dir = CONFIG_DIR / 'channel_sources'

        self.storage_dir = Path(storage_dir)
        self.metadata_file = self.storage_dir / 'metadata.json'
        self._lock = threading.Lock()

        logger.info(f"Channel repository initialized at {self.storage_dir}")

    def _snapshot_file(self, source_name: str) -> Path:
        safe_name = _UNSAFE_FILENAME_CHARS.sub('_', source_name) or '_'
        return self.storage_dir / f'{safe_name}.json'

    def _load_json(self, file_path: Path) -> Optional[Any]:
        """Load JSON data from a file.

        Returns:
            Parsed JSON data or None if the file doesn't exist or is invalid
        """
        if not file_path.exists():
            return None

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load {file_path}: {e}")
            return None

    def _save_json(self, file_path: Path, data: Any) -> bool:
        """Save data to a JSON file.

        Returns:
            True if successful, False otherwise
        """
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save {file_path}: {e}")
            return False

    def load_channels(self, source_name: str,
                      groups_by_id: Optional[Dict[str, ChannelGroup]] = None) -> List[Channel]:
        """Load the stored snapshot of a source.

        Args:
            source_name: Configured source name
            groups_by_id: Groups keyed by id, used to restore channel groups

        Returns:
            List of channels, empty when nothing usable is stored
        """
        with self._lock:
            data = self._load_json(self._snapshot_file(source_name))

        if not isinstance(data, list):
            return []

        channels = []
        for item in data:
            if not isinstance(item, dict):
                continue
            name = item.get('name')
            if not isinstance(name, str) or not name.strip():
                continue
            channels.append(Channel.from_dict(item, groups_by_id))
        return channels

    def save_channels(self, source_name: str, channels: List[Channel]) -> bool:
        """Store the snapshot of a source.

        Returns:
            True if successful
        """
        with self._lock:
            success = self._save_json(
                self._snapshot_file(source_name),
                [channel.to_dict() for channel in channels]
            )
            if success:
                self._update_metadata(source_name, len(channels))
            return success

    def load_metadata(self) -> Dict[str, Any]:
        """Load per-source snapshot metadata (last update time, channel count)."""
        with self._lock:
            data = self._load_json(self.metadata_file)
            return data if isinstance(data, dict) else {}

    def _update_metadata(self, source_name: str, channel_count: int) -> None:
        # Caller holds self._lock
        metadata = self._load_json(self.metadata_file)
        if not isinstance(metadata, dict):
            metadata = {}
        metadata[source_name] = {
            'last_updated': datetime.now().isoformat(),
            'channel_count': channel_count
        }
        self._save_json(self.metadata_file, metadata)

    def get_last_updated(self, source_name: str) -> Optional[str]:
        """Get the ISO timestamp of the last stored snapshot of a source."""
        entry = self.load_metadata().get(source_name)
        return entry.get('last_updated') if isinstance(entry, dict) else None
