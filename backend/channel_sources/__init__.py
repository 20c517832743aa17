"""
Channel sources - aggregates live channels from configured upstream sources.

This package provides:
- A parser for acestream community playlists
- Polling workers for playlist URLs and the Dispatcharr API
- ChannelSources, which owns the workers and merges their channels into one
  deduplicated, source-ordered directory

Usage:
    from channel_sources import ChannelSources

    sources = ChannelSources(configs, groups_map, AppContext.from_env(), ChannelRepository())
    await sources.start()
    channels = sources.get_channels(['main', 'backup'])
"""

from channel_sources.context import AppContext
from channel_sources.exceptions import (
    ChannelSourceError,
    ConfigurationError,
    SourceFetchError,
    UnknownSourceTypeError,
)
from channel_sources.manager import ChannelSources
from channel_sources.models import Channel, ChannelGroup, ChannelInfo, ChannelSourceConfig, SourceType
from channel_sources.playlist import parse_ace_playlist
from channel_sources.storage import ChannelRepository

__all__ = [
    'AppContext',
    'Channel',
    'ChannelGroup',
    'ChannelInfo',
    'ChannelRepository',
    'ChannelSourceConfig',
    'ChannelSourceError',
    'ChannelSources',
    'ConfigurationError',
    'SourceFetchError',
    'SourceType',
    'UnknownSourceTypeError',
    'parse_ace_playlist',
]
