"""
Parser for acestream community playlists.

Entries come as line pairs::

    #EXTINF:-1,Sports Channel (Sport)
    acestream://0123456789abcdef

The optional trailing parenthetical is the group label, resolved through the
groups map. The parser is best effort: malformed pairs are dropped and it
never raises for any input text.
"""

from typing import Dict, List

from channel_sources.models import Channel, ChannelGroup


EXTINF_MARKER = '#EXTINF:'
ACESTREAM_MARKER = 'acestream://'
BYTE_ORDER_MARK = '\ufeff'


def split_lines(content: str) -> List[str]:
    """Split text on any line break, trimming lines and dropping empty ones.

    A byte order mark left over from decoding is trimmed like whitespace.
    """
    lines = (line.replace(BYTE_ORDER_MARK, '').strip() for line in content.splitlines())
    return [line for line in lines if line]


def parse_ace_playlist(content: str, groups_map: Dict[str, ChannelGroup]) -> List[Channel]:
    """Parse playlist text into channels in source order.

    Args:
        content: Raw playlist text
        groups_map: Lookup from group label to group; unknown labels give no group

    Returns:
        List of channels; duplicates are kept
    """
    result: List[Channel] = []

    lines = split_lines(content)
    line_count = len(lines)

    k = 0
    while k < line_count - 1:
        info_line = lines[k]

        if not info_line.startswith(EXTINF_MARKER):
            k += 1
            continue

        url_line = lines[k + 1]

        # Orphaned #EXTINF: retry from the next line
        if not url_line.startswith(ACESTREAM_MARKER):
            k += 1
            continue

        # Skip the duration field so a comma in it is not taken for the title separator
        title_index = info_line.find(',', len(EXTINF_MARKER))
        if title_index == -1:
            k += 2
            continue

        title = info_line[title_index + 1:]
        group_start = title.rfind('(')
        group_end = title.rfind(')')

        if group_start != -1 and group_end != -1:
            name = title[:group_start].strip()
            group_label = title[group_start + 1:group_end].strip()
            group = groups_map.get(group_label)
        else:
            name = title.strip()
            group = None

        if not name:
            k += 2
            continue

        cid = url_line[url_line.rfind('/') + 1:]
        if not cid:
            k += 2
            continue

        k += 2
        result.append(Channel(name=name, group=group, cid=cid))

    return result
