"""
Data models for the channel sources system.

Defines the structure for:
- ChannelSourceConfig: one configured upstream (URL playlist or polling API)
- ChannelGroup: normalized group a playlist label resolves to
- Channel: a single live channel parsed from a source
- ChannelInfo: a channel together with the label of the source it came from
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any


DEFAULT_UPDATE_INTERVAL = 600  # 10 minutes


class SourceType(str, Enum):
    """Worker variants a source can be configured with."""
    ACE = 'ace'
    API = 'api'


@dataclass(frozen=True)
class ChannelSourceConfig:
    """Configuration of one channel source.

    ``type`` holds the configured tag as-is; it is validated when the
    sources are built, not when the configuration is read.
    """
    name: str
    type: str
    label: str = ""
    url: Optional[str] = None
    update_interval: float = DEFAULT_UPDATE_INTERVAL

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'ChannelSourceConfig':
        """Create a source config from its JSON entry."""
        return cls(
            name=name,
            type=str(data.get('type', '')).strip().lower(),
            label=data.get('label') or name,
            url=data.get('url'),
            update_interval=data.get('update_interval', DEFAULT_UPDATE_INTERVAL)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'type': self.type,
            'label': self.label,
            'update_interval': self.update_interval
        }
        if self.url is not None:
            result['url'] = self.url
        return result


@dataclass(frozen=True)
class ChannelGroup:
    """A channel group/category."""
    id: str
    name: str = ""
    aliases: List[str] = field(default_factory=list, compare=False, hash=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChannelGroup':
        group_id = str(data.get('id') or data.get('name') or '').strip()
        return cls(
            id=group_id,
            name=data.get('name') or group_id,
            aliases=list(data.get('aliases', []))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name}


def build_groups_map(groups: List[ChannelGroup]) -> Dict[str, ChannelGroup]:
    """Build the label -> group lookup used when parsing sources.

    Every group is reachable by its name and by each of its aliases.
    Later groups do not override labels claimed by earlier ones.
    """
    groups_map: Dict[str, ChannelGroup] = {}
    for group in groups:
        for label in [group.name, *group.aliases]:
            label = (label or '').strip()
            if label and label not in groups_map:
                groups_map[label] = group
    return groups_map


@dataclass(frozen=True)
class Channel:
    """A live channel as reported by a source."""
    name: str
    group: Optional[ChannelGroup] = None
    cid: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], groups_by_id: Optional[Dict[str, ChannelGroup]] = None) -> 'Channel':
        """Create a Channel from stored data, resolving the group by id."""
        group_id = data.get('group')
        group = None
        if group_id is not None and groups_by_id:
            group = groups_by_id.get(str(group_id))
        cid = data.get('cid')
        return cls(
            name=str(data.get('name', '')),
            group=group,
            cid=str(cid) if cid is not None else ''
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'group': self.group.id if self.group else None,
            'cid': self.cid
        }


@dataclass(frozen=True)
class ChannelInfo:
    """A channel with the label of the source that provided it."""
    channel: Channel
    source_label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.channel.name,
            'group': self.channel.group.to_dict() if self.channel.group else None,
            'cid': self.channel.cid,
            'source': self.source_label
        }
