"""
Exceptions raised by the channel sources package.
"""


class ChannelSourceError(Exception):
    """Base class for channel source errors."""


class ConfigurationError(ChannelSourceError):
    """Invalid channel source configuration. Not recoverable at runtime."""


class UnknownSourceTypeError(ConfigurationError):
    """A configured source uses a type no worker implements."""

    def __init__(self, source_name: str, source_type):
        self.source_name = source_name
        self.source_type = source_type
        super().__init__(f'Unknown source type: "{source_type}" (source "{source_name}")')


class SourceFetchError(ChannelSourceError):
    """An upstream fetch failed. Contained inside the worker's refresh loop."""
