"""
Dispatcharr API source: polls the Dispatcharr streams endpoint.
"""

from typing import Dict, List, Optional, Any

from logging_config import setup_logging

from channel_sources.context import AppContext
from channel_sources.dispatcharr_client import DispatcharrClient
from channel_sources.models import Channel, ChannelGroup
from channel_sources.storage import ChannelRepository
from channel_sources.workers import PollingSourceWorker

logger = setup_logging(__name__)


def stream_content_id(stream: Dict[str, Any]) -> str:
    """Last path segment of the stream URL, or the stream id when there is none."""
    url = (stream.get('url') or '').rstrip('/')
    cid = url[url.rfind('/') + 1:] if url else ''
    if not cid and stream.get('id') is not None:
        cid = str(stream['id'])
    return cid


class DispatcharrSource(PollingSourceWorker):
    """Worker that mirrors the streams of a Dispatcharr instance."""

    def __init__(
        self,
        name: str,
        update_interval: float,
        channel_repository: Optional[ChannelRepository],
        app_context: AppContext,
        groups_map: Dict[str, ChannelGroup],
        api_client: Optional[DispatcharrClient] = None,
    ):
        super().__init__(name, update_interval, channel_repository, app_context, groups_map)
        self.api_client = api_client or DispatcharrClient(app_context)

    def _fetch_channels(self) -> List[Channel]:
        group_names = {
            group.get('id'): (group.get('name') or '').strip()
            for group in self.api_client.fetch_channel_groups()
            if isinstance(group, dict)
        }

        channels = []
        skipped = 0
        for stream in self.api_client.fetch_streams():
            if not isinstance(stream, dict):
                skipped += 1
                continue
            name = (stream.get('name') or '').strip()
            cid = stream_content_id(stream)
            if not name or not cid:
                skipped += 1
                continue
            group_name = group_names.get(stream.get('channel_group'))
            group = self.groups_map.get(group_name) if group_name else None
            channels.append(Channel(name=name, group=group, cid=cid))

        if skipped:
            logger.debug(f"Source '{self.name}': skipped {skipped} streams without name or URL")
        return channels
