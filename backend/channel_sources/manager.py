"""
Channel sources manager - merges every configured source into one channel directory.

The ChannelSources object:
- Builds one worker per configured source when it is created
- Starts and stops all workers concurrently
- Merges the workers' in-memory snapshots on request, deduplicating
  channels by case-insensitive name

Usage:
    sources = ChannelSources(source_configs, groups_map, app_context, repository)
    await sources.start()

    # First source in the list wins for channels present in several sources
    channels = sources.get_channels(['main', 'backup'])

    await sources.stop()
"""

import asyncio
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Optional

from logging_config import setup_logging, log_exception

from channel_sources.ace_source import AceSource
from channel_sources.api_source import DispatcharrSource
from channel_sources.context import AppContext
from channel_sources.dispatcharr_client import DispatcharrClient
from channel_sources.exceptions import ConfigurationError, UnknownSourceTypeError
from channel_sources.models import ChannelGroup, ChannelInfo, ChannelSourceConfig, SourceType
from channel_sources.storage import ChannelRepository
from channel_sources.workers import ChannelSourceWorker

logger = setup_logging(__name__)


class ChannelSources:
    """
    Owns the workers of all configured sources.

    The set of sources is fixed at construction; both registries are only
    read afterwards, so get_channels() needs no locking.
    """

    def __init__(
        self,
        source_configs: Dict[str, ChannelSourceConfig],
        groups_map: Dict[str, ChannelGroup],
        app_context: AppContext,
        channel_repository: Optional[ChannelRepository] = None,
        api_client: Optional[DispatcharrClient] = None,
    ):
        """Build a worker for every configured source.

        Args:
            source_configs: Source name -> configuration
            groups_map: Group label -> group, shared by all workers
            app_context: Shared HTTP settings
            channel_repository: Snapshot storage, or None to disable persistence
            api_client: Dispatcharr client for API sources (created on demand if None)

        Raises:
            UnknownSourceTypeError: If any source has an unsupported type
            ConfigurationError: If a source lacks a setting its type requires
        """
        self._groups_map = groups_map
        self._app_context = app_context
        self._channel_repository = channel_repository
        self._api_client = api_client

        configs: Dict[str, ChannelSourceConfig] = {}
        workers: Dict[str, ChannelSourceWorker] = {}

        for name, config in source_configs.items():
            workers[name] = self._create_worker(name, config)
            configs[name] = config

        # Only assigned once every source was built
        self._configs = configs
        self._workers = workers

        logger.info(f"Channel sources created: {', '.join(self._configs) or 'none'}")

    def _create_worker(self, name: str, config: ChannelSourceConfig) -> ChannelSourceWorker:
        try:
            source_type = SourceType(config.type)
        except ValueError:
            raise UnknownSourceTypeError(name, config.type) from None

        factories: Dict[SourceType, Callable[[str, ChannelSourceConfig], ChannelSourceWorker]] = {
            SourceType.ACE: self._create_ace_source,
            SourceType.API: self._create_api_source,
        }
        factory = factories.get(source_type)
        if factory is None:
            raise UnknownSourceTypeError(name, config.type)
        return factory(name, config)

    def _create_ace_source(self, name: str, config: ChannelSourceConfig) -> ChannelSourceWorker:
        if not config.url:
            raise ConfigurationError(f'Source "{name}" of type "ace" requires a url')
        return AceSource(
            name,
            config.url,
            config.update_interval,
            self._channel_repository,
            self._app_context,
            self._groups_map,
        )

    def _create_api_source(self, name: str, config: ChannelSourceConfig) -> ChannelSourceWorker:
        if self._api_client is None:
            self._api_client = DispatcharrClient(self._app_context)
        return DispatcharrSource(
            name,
            config.update_interval,
            self._channel_repository,
            self._app_context,
            self._groups_map,
            self._api_client,
        )

    @property
    def source_names(self) -> List[str]:
        """Configured source names in configuration order."""
        return list(self._configs)

    def get_source_config(self, name: str) -> Optional[ChannelSourceConfig]:
        return self._configs.get(name)

    def get_worker(self, name: str) -> Optional[ChannelSourceWorker]:
        return self._workers.get(name)

    async def start(self) -> None:
        """Start every worker concurrently.

        Every worker's start is scheduled. The first failure is raised as soon
        as it happens; workers that started (or are still starting) are left
        running, so the caller decides whether to stop() before retrying.
        Failures of the other workers are logged as they finish.
        """
        logger.info(f"Starting {len(self._workers)} channel sources...")
        await self._run_all('start', lambda worker: worker.start())
        logger.info("All channel sources started")

    async def stop(self) -> None:
        """Stop every worker concurrently, with the same failure semantics as start()."""
        logger.info(f"Stopping {len(self._workers)} channel sources...")
        await self._run_all('stop', lambda worker: worker.stop())
        logger.info("All channel sources stopped")

    async def _run_all(self, action: str, call: Callable[[ChannelSourceWorker], Any]) -> None:
        tasks = []
        for name, worker in self._workers.items():
            task = asyncio.ensure_future(call(worker))
            task.add_done_callback(partial(self._log_failure, name, action))
            tasks.append(task)
        await asyncio.gather(*tasks)

    @staticmethod
    def _log_failure(name: str, action: str, task: asyncio.Future) -> None:
        # Retrieves the exception, including those gather() no longer waits for
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log_exception(logger, error, f"{action} of source '{name}'")

    def get_channels(self, source_names: Iterable[str]) -> List[ChannelInfo]:
        """Merge the current channels of the given sources.

        Sources are read in the given order and a channel whose lowercased
        name was already seen is skipped, so earlier sources take precedence.
        Unknown source names are ignored. Never fetches.

        Args:
            source_names: Source names in priority order

        Returns:
            List of channel infos in first-seen order
        """
        result: Dict[str, ChannelInfo] = {}

        for source_name in source_names:
            config = self._configs.get(source_name)
            if config is None:
                continue

            worker = self._workers.get(source_name)
            if worker is None:
                continue

            for channel in worker.get_channels():
                key = channel.name.lower()
                if key in result:
                    continue
                result[key] = ChannelInfo(channel=channel, source_label=config.label)

        return list(result.values())

    def get_status(self) -> Dict[str, Any]:
        """Status of every source keyed by name."""
        return {
            name: {
                'type': config.type,
                'label': config.label,
                **self._workers[name].get_status()
            }
            for name, config in self._configs.items()
        }
