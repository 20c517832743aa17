"""
Channel source workers.

A worker owns one configured source: it keeps the latest channel snapshot in
memory and refreshes it on its own cadence. Readers only ever see the
snapshot; they never trigger a fetch.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Any

from logging_config import setup_logging, log_exception, log_state_change

from channel_sources.context import AppContext
from channel_sources.models import Channel, ChannelGroup
from channel_sources.storage import ChannelRepository

logger = setup_logging(__name__)


class ChannelSourceWorker(ABC):
    """Capabilities every source variant provides."""

    @abstractmethod
    async def start(self) -> None:
        """Start producing channels. May raise."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop refreshing. May raise."""

    @abstractmethod
    def get_channels(self) -> List[Channel]:
        """Return the current snapshot. Never blocks, never raises."""

    def get_status(self) -> Dict[str, Any]:
        return {}


class PollingSourceWorker(ChannelSourceWorker):
    """
    Worker that refreshes its snapshot by polling an upstream on a fixed interval.

    Subclasses implement _fetch_channels(), a blocking call that runs in a
    thread. A failed refresh keeps the previous snapshot.
    """

    def __init__(
        self,
        name: str,
        update_interval: float,
        channel_repository: Optional[ChannelRepository],
        app_context: AppContext,
        groups_map: Dict[str, ChannelGroup],
    ):
        self.name = name
        self.update_interval = update_interval
        self.channel_repository = channel_repository
        self.app_context = app_context
        self.groups_map = groups_map

        self._channels: List[Channel] = []
        self._running = False
        self._stop_event: Optional[asyncio.Event] = None
        self._refresh_task: Optional[asyncio.Task] = None

        self.last_refresh: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.refresh_count = 0
        self.error_count = 0

    @abstractmethod
    def _fetch_channels(self) -> List[Channel]:
        """Fetch and parse the upstream. Runs in a worker thread."""

    @property
    def running(self) -> bool:
        return self._running

    def _groups_by_id(self) -> Dict[str, ChannelGroup]:
        return {group.id: group for group in self.groups_map.values()}

    def _load_stored_snapshot(self) -> None:
        if self.channel_repository is None or self._channels:
            return
        channels = self.channel_repository.load_channels(self.name, self._groups_by_id())
        if channels:
            self._channels = channels
            logger.info(f"Source '{self.name}': restored {len(channels)} channels from storage")

    async def start(self) -> None:
        if self._running:
            logger.warning(f"Source '{self.name}' already running")
            return

        self._load_stored_snapshot()

        self._running = True
        self._stop_event = asyncio.Event()
        log_state_change(logger, f"source:{self.name}", "stopped", "running")

        try:
            await self.refresh()
        except Exception:
            self._running = False
            self._stop_event = None
            log_state_change(logger, f"source:{self.name}", "running", "stopped")
            raise

        self._refresh_task = asyncio.create_task(self._refresh_loop(self._stop_event))
        logger.info(f"Source '{self.name}' started (interval: {self.update_interval}s)")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        self._stop_event.set()
        log_state_change(logger, f"source:{self.name}", "running", "stopped")

        task, self._refresh_task = self._refresh_task, None
        if task is not None:
            # An in-flight fetch is left to finish on its own
            _, pending = await asyncio.wait({task}, timeout=self.app_context.stop_timeout)
            if pending:
                logger.warning(f"Source '{self.name}' is still finishing a refresh")

        logger.info(f"Source '{self.name}' stopped")

    async def refresh(self) -> bool:
        """Refresh the snapshot once.

        Returns:
            True if the snapshot was replaced, False if the refresh failed
        """
        try:
            channels = await asyncio.to_thread(self._fetch_channels)
        except Exception as e:
            self.last_error = f"{type(e).__name__}: {e}"
            self.error_count += 1
            log_exception(logger, e, f"refresh of source '{self.name}'")
            if self._channels:
                logger.warning(f"Source '{self.name}': keeping {len(self._channels)} channels from the last refresh")
            return False

        self._channels = channels
        self.last_refresh = datetime.now()
        self.last_error = None
        self.refresh_count += 1
        logger.info(f"Source '{self.name}': {len(channels)} channels")

        if self.channel_repository is not None:
            try:
                await asyncio.to_thread(self.channel_repository.save_channels, self.name, channels)
            except Exception as e:
                log_exception(logger, e, f"saving snapshot of source '{self.name}'")

        return True

    async def _refresh_loop(self, stop_event: asyncio.Event) -> None:
        logger.debug(f"Refresh loop for source '{self.name}' started")
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.update_interval)
            except asyncio.TimeoutError:
                try:
                    await self.refresh()
                except Exception as e:
                    log_exception(logger, e, f"refresh loop of source '{self.name}'")
        logger.debug(f"Refresh loop for source '{self.name}' stopped")

    def get_channels(self) -> List[Channel]:
        return list(self._channels)

    def get_status(self) -> Dict[str, Any]:
        return {
            'running': self._running,
            'channel_count': len(self._channels),
            'update_interval': self.update_interval,
            'last_refresh': self.last_refresh.isoformat() if self.last_refresh else None,
            'last_error': self.last_error,
            'refresh_count': self.refresh_count,
            'error_count': self.error_count
        }
