#!/usr/bin/env python3
"""
Unit tests for the acestream playlist parser.

Tests cover:
1. Name, group and content id extraction
2. Skipping of stray and orphaned lines
3. Dropping of malformed pairs
4. Totality and determinism
"""

import os
import sys
import unittest

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from channel_sources.models import Channel, ChannelGroup, build_groups_map
from channel_sources.playlist import parse_ace_playlist, split_lines


NEWS = ChannelGroup(id='news', name='News')
SPORT = ChannelGroup(id='sport', name='Sport', aliases=['Спорт'])
GROUPS_MAP = build_groups_map([NEWS, SPORT])


class TestSplitLines(unittest.TestCase):
    """Test line splitting."""

    def test_trims_and_drops_empty_lines(self):
        self.assertEqual(split_lines("  a  \r\n\n\t\nb\r\n   \n"), ['a', 'b'])

    def test_empty_text(self):
        self.assertEqual(split_lines(""), [])

    def test_drops_byte_order_mark(self):
        self.assertEqual(split_lines("\ufeff#EXTM3U\r\n\ufeff\n b "), ['#EXTM3U', 'b'])


class TestParseAcePlaylist(unittest.TestCase):
    """Test parse_ace_playlist."""

    def test_channel_with_group(self):
        """A title with a known group label resolves the group."""
        content = "#EXTM3U\n#EXTINF:-1,Sports Channel (News)\nacestream://abcd1234\n"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Sports Channel', group=NEWS, cid='abcd1234')])

    def test_leading_byte_order_mark(self):
        """A playlist saved with a BOM still yields its first entry."""
        result = parse_ace_playlist("\ufeff#EXTINF:-1,Chan\nacestream://abc", {})

        self.assertEqual(result, [Channel(name='Chan', group=None, cid='abc')])

    def test_channel_without_group(self):
        content = "#EXTINF:-1,Plain Channel\nacestream://ffff0000"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Plain Channel', group=None, cid='ffff0000')])

    def test_group_alias(self):
        content = "#EXTINF:-1,Матч ТВ (Спорт)\nacestream://1111"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result[0].name, 'Матч ТВ')
        self.assertIs(result[0].group, SPORT)

    def test_unknown_group_label(self):
        """An unknown label keeps the channel but without a group."""
        content = "#EXTINF:-1,Some Channel (Movies)\nacestream://2222"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Some Channel', group=None, cid='2222')])

    def test_last_parenthesis_is_group(self):
        content = "#EXTINF:-1,Channel (HD) (Sport)\nacestream://3333"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result[0].name, 'Channel (HD)')
        self.assertIs(result[0].group, SPORT)

    def test_group_label_is_trimmed(self):
        content = "#EXTINF:-1,Channel (  News  )\nacestream://4444"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertIs(result[0].group, NEWS)

    def test_only_opening_parenthesis(self):
        """Without a closing parenthesis the whole title is the name."""
        content = "#EXTINF:-1,Channel (News\nacestream://5555"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Channel (News', group=None, cid='5555')])

    def test_closing_before_opening_parenthesis(self):
        content = "#EXTINF:-1,Chan)nel (News\nacestream://6666"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Chan)nel', group=None, cid='6666')])

    def test_title_is_text_after_first_comma(self):
        content = "#EXTINF:-1 tvg-name=\"x\",Channel, The Second\nacestream://7777"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result[0].name, 'Channel, The Second')

    def test_content_id_after_last_slash(self):
        content = "#EXTINF:-1,Channel\nacestream://host/path/abc"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result[0].cid, 'abc')

    def test_stray_lines_skipped_one_at_a_time(self):
        """Non-metadata lines never swallow the following line."""
        content = "\n".join([
            "#EXTM3U",
            "garbage",
            "#EXTINF:-1,First",
            "acestream://1",
        ])
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual([c.name for c in result], ['First'])

    def test_orphaned_metadata_line(self):
        """A metadata line followed by a non-URI line is dropped alone."""
        content = "\n".join([
            "#EXTINF:-1,Orphan",
            "#EXTINF:-1,Second",
            "acestream://2",
            "#EXTINF:-1,Third",
            "http://not-acestream/3",
            "#EXTINF:-1,Fourth",
            "acestream://4",
        ])
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual([c.name for c in result], ['Second', 'Fourth'])
        self.assertEqual([c.cid for c in result], ['2', '4'])

    def test_missing_comma_drops_pair(self):
        content = "\n".join([
            "#EXTINF:-1 No comma here",
            "acestream://1",
            "#EXTINF:-1,Good",
            "acestream://2",
        ])
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Good', cid='2')])

    def test_comma_right_after_marker(self):
        """A comma directly after the marker still separates the title."""
        content = "#EXTINF:,Channel\nacestream://1"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Channel', cid='1')])

    def test_empty_name_drops_pair(self):
        content = "\n".join([
            "#EXTINF:-1, (News)",
            "acestream://1",
            "#EXTINF:-1,",
            "acestream://2",
            "#EXTINF:-1,Good",
            "acestream://3",
        ])
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Good', cid='3')])

    def test_empty_content_id_drops_pair(self):
        content = "\n".join([
            "#EXTINF:-1,Bad",
            "acestream://",
            "#EXTINF:-1,Good",
            "acestream://3",
        ])
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Good', cid='3')])

    def test_malformed_pair_consumes_both_lines(self):
        """After a dropped pair, scanning resumes after its URI line."""
        content = "\n".join([
            "#EXTINF:-1,",
            "acestream://1",
            "#EXTINF:-1,Next",
            "acestream://2",
        ])
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].name, 'Next')

    def test_trailing_metadata_line(self):
        content = "#EXTINF:-1,One\nacestream://1\n#EXTINF:-1,Dangling"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual([c.name for c in result], ['One'])

    def test_duplicates_are_kept(self):
        content = "#EXTINF:-1,Same\nacestream://1\n#EXTINF:-1,Same\nacestream://2"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual([c.cid for c in result], ['1', '2'])

    def test_windows_line_endings_and_indentation(self):
        content = "  #EXTINF:-1,Channel (News)  \r\n\r\n   acestream://abc  \r\n"
        result = parse_ace_playlist(content, GROUPS_MAP)

        self.assertEqual(result, [Channel(name='Channel', group=NEWS, cid='abc')])

    def test_never_raises(self):
        """Arbitrary text never raises."""
        samples = [
            "",
            "\n\n\n",
            "#EXTINF:",
            "#EXTINF:\nacestream://",
            "acestream://only",
            "((()))\n#EXTINF:-1,)(\nacestream:///",
            "\x00\x01\x02#EXTINF:-1, acestream://x",
        ]
        for sample in samples:
            with self.subTest(sample=sample):
                self.assertIsInstance(parse_ace_playlist(sample, GROUPS_MAP), list)

    def test_deterministic(self):
        content = "#EXTINF:-1,A (News)\nacestream://1\nx\n#EXTINF:-1,B\nacestream://2"
        self.assertEqual(
            parse_ace_playlist(content, GROUPS_MAP),
            parse_ace_playlist(content, GROUPS_MAP)
        )

    def test_empty_groups_map(self):
        content = "#EXTINF:-1,A (News)\nacestream://1"
        result = parse_ace_playlist(content, {})

        self.assertEqual(result, [Channel(name='A', group=None, cid='1')])


if __name__ == '__main__':
    unittest.main()
