#!/usr/bin/env python3
"""
Web API Server for the channel sources directory.

Serves the merged channel directory to the downstream catalog. Workers run
on an asyncio event loop in a background thread; requests only read their
in-memory snapshots.
"""

import asyncio
import os
import sys
import threading
from datetime import datetime
from typing import List, Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from logging_config import setup_logging, log_exception

from channel_sources import AppContext, ChannelRepository, ChannelSources, ConfigurationError
from sources_config import get_sources_config

logger = setup_logging(__name__)

SHUTDOWN_TIMEOUT_SECONDS = 10

app = Flask(__name__)
CORS(app)

# Global instances
channel_sources: Optional[ChannelSources] = None
event_loop: Optional[asyncio.AbstractEventLoop] = None
event_loop_thread: Optional[threading.Thread] = None


def create_channel_sources() -> ChannelSources:
    """Build the channel sources from configuration.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config = get_sources_config()
    return ChannelSources(
        config.get_source_configs(),
        config.get_groups_map(),
        AppContext.from_env(),
        ChannelRepository(),
    )


def _run_event_loop(loop: asyncio.AbstractEventLoop) -> None:
    asyncio.set_event_loop(loop)
    loop.run_forever()


def start_channel_sources(sources: ChannelSources) -> None:
    """Start the event loop thread and all sources on it.

    Raises whatever the first failing source raised.
    """
    global channel_sources, event_loop, event_loop_thread

    channel_sources = sources
    if event_loop is None:
        event_loop = asyncio.new_event_loop()
        event_loop_thread = threading.Thread(target=_run_event_loop, args=(event_loop,), daemon=True)
        event_loop_thread.start()

    future = asyncio.run_coroutine_threadsafe(sources.start(), event_loop)
    future.result()


def stop_channel_sources() -> None:
    """Stop all sources and the event loop thread."""
    global event_loop, event_loop_thread

    if event_loop is None:
        return

    if channel_sources is not None:
        future = asyncio.run_coroutine_threadsafe(channel_sources.stop(), event_loop)
        try:
            future.result(timeout=SHUTDOWN_TIMEOUT_SECONDS)
        except Exception as e:
            log_exception(logger, e, "stopping channel sources")

    event_loop.call_soon_threadsafe(event_loop.stop)
    if event_loop_thread is not None:
        event_loop_thread.join(timeout=SHUTDOWN_TIMEOUT_SECONDS)
    event_loop = None
    event_loop_thread = None


def _requested_sources() -> List[str]:
    """Source names from ?sources=a,b (or repeated ?source=), else the configured defaults."""
    names: List[str] = []
    for value in request.args.getlist('sources') + request.args.getlist('source'):
        names.extend(name.strip() for name in value.split(',') if name.strip())
    if names:
        return names
    return get_sources_config().get_default_sources() or channel_sources.source_names


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy", "timestamp": datetime.now().isoformat()})


@app.route('/health', methods=['GET'])
def health_check_stripped():
    """Health check endpoint for nginx proxy (stripped /api prefix)."""
    return health_check()


@app.route('/api/channels', methods=['GET'])
def get_channels():
    """Get the merged channel directory for the requested sources."""
    if channel_sources is None:
        return jsonify({"error": "Channel sources not initialized"}), 503
    try:
        source_names = _requested_sources()
        channels = channel_sources.get_channels(source_names)
        return jsonify([info.to_dict() for info in channels])
    except Exception as e:
        logger.error(f"Error building channel directory: {e}")
        return jsonify({"error": str(e)}), 500


@app.route('/api/sources', methods=['GET'])
def get_sources():
    """Get the status of every configured source."""
    if channel_sources is None:
        return jsonify({"error": "Channel sources not initialized"}), 503
    return jsonify(channel_sources.get_status())


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Channel sources Web API')
    parser.add_argument('--host', default=os.environ.get('API_HOST', '0.0.0.0'), help='Host to bind to')
    parser.add_argument('--port', type=int, default=int(os.environ.get('API_PORT', '5000')), help='Port to bind to')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    args = parser.parse_args()

    try:
        sources = create_channel_sources()
    except ConfigurationError as e:
        logger.error(f"Invalid channel sources configuration: {e}")
        sys.exit(1)

    try:
        start_channel_sources(sources)
    except Exception as e:
        # Sources that did start keep serving; the failed ones stay empty
        log_exception(logger, e, "starting channel sources")

    logger.info(f"Starting channel sources Web API on {args.host}:{args.port}")
    try:
        app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)
    finally:
        stop_channel_sources()
