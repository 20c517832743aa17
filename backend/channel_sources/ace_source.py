"""
Acestream playlist source: polls a playlist URL and parses it into channels.
"""

import time
from typing import Dict, List, Optional

import requests

from logging_config import setup_logging, log_api_request, log_api_response

from channel_sources.context import AppContext
from channel_sources.exceptions import SourceFetchError
from channel_sources.models import Channel, ChannelGroup
from channel_sources.playlist import parse_ace_playlist
from channel_sources.storage import ChannelRepository
from channel_sources.workers import PollingSourceWorker

logger = setup_logging(__name__)


class AceSource(PollingSourceWorker):
    """Worker for a community acestream playlist published at a URL."""

    def __init__(
        self,
        name: str,
        url: str,
        update_interval: float,
        channel_repository: Optional[ChannelRepository],
        app_context: AppContext,
        groups_map: Dict[str, ChannelGroup],
    ):
        super().__init__(name, update_interval, channel_repository, app_context, groups_map)
        self.url = url

    def _fetch_playlist(self) -> str:
        """Download the playlist text.

        Raises:
            SourceFetchError: On network errors or a non-success status
        """
        try:
            start_time = time.time()
            log_api_request(logger, "GET", self.url)
            resp = self.app_context.session.get(
                self.url,
                headers=self.app_context.default_headers(),
                timeout=self.app_context.http_timeout
            )
            log_api_response(logger, "GET", self.url, resp.status_code, time.time() - start_time)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise SourceFetchError(f"Error fetching playlist {self.url}: {e}") from e

        # Playlists are UTF-8 in practice even when served as text/plain without a charset
        if 'charset' not in resp.headers.get('Content-Type', '').lower():
            resp.encoding = 'utf-8'
        return resp.text

    def _fetch_channels(self) -> List[Channel]:
        return parse_ace_playlist(self._fetch_playlist(), self.groups_map)

    def get_status(self):
        status = super().get_status()
        status['url'] = self.url
        return status
