#!/usr/bin/env python3
"""
Integration tests for the channel directory Web API.

This module tests:
- /api/channels merging by requested or default sources
- /api/sources status
- Starting and stopping sources on the background event loop
"""

import os
import sys
import tempfile
import unittest
from unittest.mock import MagicMock, patch

# Set up CONFIG_DIR before importing modules that read it
os.environ['CONFIG_DIR'] = tempfile.mkdtemp()

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import web_api
from web_api import app
from channel_sources.context import AppContext
from channel_sources.manager import ChannelSources
from channel_sources.models import Channel, ChannelGroup, ChannelSourceConfig
from channel_sources.workers import ChannelSourceWorker


class StaticWorker(ChannelSourceWorker):

    def __init__(self, channels, start_error=None):
        self.channels = channels
        self.start_error = start_error
        self.running = False

    async def start(self):
        if self.start_error:
            raise self.start_error
        self.running = True

    async def stop(self):
        self.running = False

    def get_channels(self):
        return list(self.channels)

    def get_status(self):
        return {'running': self.running, 'channel_count': len(self.channels)}


def build_sources(workers):
    configs = {
        name: ChannelSourceConfig(name=name, type='ace', label=f'Label {name}', url=f'http://x/{name}')
        for name in workers
    }
    with patch('channel_sources.manager.AceSource', side_effect=lambda name, *args: workers[name]):
        return ChannelSources(configs, {}, AppContext(), None)


class TestWebAPI(unittest.TestCase):
    """Test the HTTP endpoints."""

    def setUp(self):
        self.app = app.test_client()
        self.app.testing = True

        sport = ChannelGroup(id='sport', name='Sport')
        self.workers = {
            'a': StaticWorker([Channel('Sport 1', sport, 'a1'), Channel('News', None, 'a2')]),
            'b': StaticWorker([Channel('news', None, 'b1'), Channel('Kids', None, 'b2')]),
        }
        self.sources = build_sources(self.workers)
        self.original_sources = web_api.channel_sources
        web_api.channel_sources = self.sources

        self.config = MagicMock()
        self.config.get_default_sources.return_value = ['b', 'a']
        self.config_patcher = patch('web_api.get_sources_config', return_value=self.config)
        self.config_patcher.start()

    def tearDown(self):
        self.config_patcher.stop()
        web_api.channel_sources = self.original_sources

    def test_health(self):
        response = self.app.get('/api/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['status'], 'healthy')

        self.assertEqual(self.app.get('/health').status_code, 200)

    def test_channels_for_requested_sources(self):
        response = self.app.get('/api/channels?sources=a,b')

        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual([c['name'] for c in data], ['Sport 1', 'News', 'Kids'])
        self.assertEqual(data[0], {
            'name': 'Sport 1',
            'group': {'id': 'sport', 'name': 'Sport'},
            'cid': 'a1',
            'source': 'Label a',
        })
        self.assertEqual(data[1]['source'], 'Label a')

    def test_repeated_source_parameter(self):
        response = self.app.get('/api/channels?source=b&source=a')

        data = response.get_json()
        self.assertEqual([c['cid'] for c in data], ['b1', 'b2', 'a1'])

    def test_default_sources(self):
        response = self.app.get('/api/channels')

        data = response.get_json()
        self.assertEqual([c['cid'] for c in data], ['b1', 'b2', 'a1'])
        self.assertEqual(data[0]['source'], 'Label b')

    def test_all_sources_when_no_defaults(self):
        self.config.get_default_sources.return_value = []

        data = self.app.get('/api/channels').get_json()
        self.assertEqual([c['cid'] for c in data], ['a1', 'a2', 'b2'])

    def test_unknown_source_is_ignored(self):
        data = self.app.get('/api/channels?sources=missing,b').get_json()
        self.assertEqual([c['cid'] for c in data], ['b1', 'b2'])

    def test_not_initialized(self):
        web_api.channel_sources = None

        self.assertEqual(self.app.get('/api/channels').status_code, 503)
        self.assertEqual(self.app.get('/api/sources').status_code, 503)

    def test_sources_status(self):
        data = self.app.get('/api/sources').get_json()

        self.assertEqual(set(data), {'a', 'b'})
        self.assertEqual(data['a']['label'], 'Label a')
        self.assertEqual(data['a']['type'], 'ace')
        self.assertEqual(data['b']['channel_count'], 2)


class TestSourcesLifecycle(unittest.TestCase):
    """Test running sources on the background event loop."""

    def setUp(self):
        self.original_sources = web_api.channel_sources

    def tearDown(self):
        web_api.stop_channel_sources()
        web_api.channel_sources = self.original_sources

    def test_start_and_stop(self):
        workers = {'a': StaticWorker([]), 'b': StaticWorker([])}
        sources = build_sources(workers)

        web_api.start_channel_sources(sources)
        self.assertIs(web_api.channel_sources, sources)
        self.assertTrue(all(w.running for w in workers.values()))
        self.assertTrue(web_api.event_loop_thread.is_alive())

        web_api.stop_channel_sources()
        self.assertFalse(any(w.running for w in workers.values()))
        self.assertIsNone(web_api.event_loop)

    def test_start_failure_is_raised(self):
        workers = {'a': StaticWorker([]), 'b': StaticWorker([], start_error=RuntimeError('boom'))}
        sources = build_sources(workers)

        with self.assertRaises(RuntimeError):
            web_api.start_channel_sources(sources)
        self.assertTrue(workers['a'].running)

    def test_stop_without_start(self):
        web_api.stop_channel_sources()
        self.assertIsNone(web_api.event_loop)

    def test_create_channel_sources_from_config(self):
        config = MagicMock()
        config.get_source_configs.return_value = {
            'main': ChannelSourceConfig(name='main', type='ace', label='Main', url='http://x/main')
        }
        config.get_groups_map.return_value = {}

        with patch('web_api.get_sources_config', return_value=config):
            sources = web_api.create_channel_sources()

        self.assertEqual(sources.source_names, ['main'])


if __name__ == '__main__':
    unittest.main()
