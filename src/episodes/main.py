#!/usr/bin/env python3
"""
episodes: mark/episode instrumentation with a replayable line protocol

Main entry point. Three modes:
1. Demo (default): instruments a short example run, mirrors it through an
   in-process channel and logs the resulting timeline
2. Replay: rebuilds tables from a recorded message file and prints them
3. Listen: binds a ZeroMQ PULL socket, mirrors every registry that
   connects, serves the tables over HTTP and beacons on 'done'

Usage:
    # Demo
    episodes --width 600

    # Replay a captured stream (one protocol line per line; '-' for stdin)
    episodes --replay messages.log --width 800

    # Listener daemon
    episodes --listen --config /etc/episodes/config.toml

Architecture:
    ┌──────────────┐  EPISODES:mark:...   ┌────────────────┐
    │ TimeRegistry │ ───────────────────▶ │ MirrorListener │──▶ /status, /timeline
    │  (client)    │   ordered channel    │  (listener)    │──▶ snapshot file
    └──────────────┘                      └────────────────┘──▶ beacon on done
"""

import argparse
import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

import toml

# Set up logging before imports that use it
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger('episodes')

from .constants import PREFIX
from .engine.mirror import MirrorListener
from .engine.registry import RegistryConfig, TimeRegistry
from .interfaces.episode_data import EpisodeData
from .interfaces.platform import SystemPlatform
from .output.formatters import default_formatter, make_boomerang_formatter
from .output.listener_server import ListenerServer
from .output.reporter import BeaconReporter
from .output.snapshot_writer import SnapshotWriter
from .timeline.layout import layout_episodes
from .transport.base import InProcessChannel


DEFAULT_CONFIG: Dict[str, Any] = {
    'prefix': PREFIX,
    'registry': {
        'emit_messages': True,
        'include_platform_timing_marks': True,
        'auto_finalize': False,
        'debug_logging': False,
    },
    'listener': {
        'endpoint': 'tcp://127.0.0.1:5599',
        'http_port': 8080,
        'bind_address': '127.0.0.1',
        'snapshot_path': '',
        'poll_interval': 1.0,
    },
    'timeline': {
        'width': 800,
        'margin': 40,
    },
    'beacon': {
        'base_url': '',
        'formatter': 'default',
        'page_url': '',
    },
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from TOML file, filling in defaults per section.
    """
    config = {
        key: dict(value) if isinstance(value, dict) else value
        for key, value in DEFAULT_CONFIG.items()
    }
    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            loaded = toml.load(f)
        for key, value in loaded.items():
            if isinstance(value, dict) and isinstance(config.get(key), dict):
                config[key].update(value)
            else:
                config[key] = value
    elif config_path:
        logger.warning(f"Config file {config_path} not found, using defaults")
    return config


def log_timeline(data: EpisodeData, width: float, margin: int):
    """Log each bar of the timeline as a text row."""
    for bar in layout_episodes(data, width, margin):
        duration = f" {bar.duration_ms}ms" if bar.duration_ms > 0 else ""
        logger.info(
            f"  row {bar.row:2d} left={bar.left_px:5d}px width={bar.width_px:5d}px  "
            f"{bar.name}{duration}"
        )


class ListenerDaemon:
    """
    Long-running listener.

    Mirrors lines from a ZMQ channel, serves the tables over HTTP, writes a
    snapshot file and sends a beacon on every 'done'.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        listener_config = config.get('listener', {})
        beacon_config = config.get('beacon', {})

        self.endpoint = listener_config.get('endpoint', 'tcp://127.0.0.1:5599')
        self.poll_interval = float(listener_config.get('poll_interval', 1.0))
        self.running = False

        self.mirror = MirrorListener(prefix=config.get('prefix', PREFIX))

        self.snapshot_writer: Optional[SnapshotWriter] = None
        if listener_config.get('snapshot_path'):
            self.snapshot_writer = SnapshotWriter(listener_config['snapshot_path'])

        self.reporter: Optional[BeaconReporter] = None
        if beacon_config.get('base_url'):
            if beacon_config.get('formatter') == 'boomerang':
                formatter = make_boomerang_formatter(beacon_config.get('page_url', ''))
            else:
                formatter = default_formatter
            self.reporter = BeaconReporter(
                beacon_config['base_url'],
                formatter=formatter,
                listener=self.mirror,
            )
        self._beacon = self.mirror.on_done
        self.mirror.on_done = self._on_done

        self.server: Optional[ListenerServer] = None
        http_port = int(listener_config.get('http_port', 0))
        if http_port > 0:
            self.server = ListenerServer(
                port=http_port,
                bind_address=listener_config.get('bind_address', '127.0.0.1'),
            )
            self.server.set_listener(self.mirror)

        logger.info("=" * 60)
        logger.info("episodes listener initializing")
        logger.info(f"  Endpoint: {self.endpoint}")
        logger.info(f"  HTTP port: {http_port or 'disabled'}")
        logger.info(f"  Snapshot: {listener_config.get('snapshot_path') or 'disabled'}")
        logger.info(f"  Beacon: {beacon_config.get('base_url') or 'disabled'}")
        logger.info("=" * 60)

    def _on_done(self, data: EpisodeData):
        if self.snapshot_writer:
            self.snapshot_writer.write(data)
        if self._beacon:
            self._beacon(data)
        else:
            logger.info(f"Done #{self.mirror.done_count}: {data.measures}")

    def start(self):
        """Run until SIGINT/SIGTERM."""
        from .transport.zmq_channel import ZmqChannel

        channel = ZmqChannel(self.endpoint, role=ZmqChannel.LISTENER)
        self.running = True

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        if self.server:
            self.server.start()

        try:
            while self.running:
                self.mirror.consume(channel, timeout=self.poll_interval, max_lines=1000)
        finally:
            channel.close()
            if self.server:
                self.server.stop()
            logger.info(
                f"Listener stopped: {self.mirror.stats['messages_applied']} messages, "
                f"{self.mirror.done_count} done"
            )

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.running = False


def run_demo(config: Dict[str, Any], width: float, margin: int) -> EpisodeData:
    """
    Instrument a short run and mirror it in-process.

    Marks m1..m4 roughly 200 ms apart, then measures m1..now, m2..m3 and
    m3..m4.
    """
    channel = InProcessChannel()
    registry = TimeRegistry(
        config=RegistryConfig.from_dict(config.get('registry', {})),
        platform=SystemPlatform(register_atexit=False),
        channel=channel,
        prefix=config.get('prefix', PREFIX),
    )
    mirror = MirrorListener(prefix=registry.prefix)

    for name in ('m1', 'm2', 'm3'):
        registry.mark(name)
        time.sleep(0.2)
    registry.mark('m4')
    registry.measure('m1..end', 'm1')
    registry.measure('m2..m3', 'm2', 'm3')
    registry.measure('m3..m4', 'm3', 'm4')

    mirror.consume(channel)
    data = mirror.snapshot()

    logger.info(f"Mirrored {len(data.marks)} marks and {len(data.measures)} episodes "
                f"from {channel.sent_count} messages")
    log_timeline(data, width, margin)
    return data


def run_replay(path: str, config: Dict[str, Any], width: Optional[float], margin: int) -> EpisodeData:
    """Replay a recorded message stream and print the tables as JSON."""
    mirror = MirrorListener(prefix=config.get('prefix', PREFIX))

    if path == '-':
        for line in sys.stdin:
            mirror.handle_line(line)
    else:
        with open(path, 'r') as f:
            for line in f:
                mirror.handle_line(line)

    data = mirror.snapshot()
    print(data.to_json())

    if width:
        bars = layout_episodes(data, width, margin)
        print(json.dumps([bar.to_dict() for bar in bars], indent=2))

    logger.info(
        f"Replayed {mirror.stats['lines_received']} lines: "
        f"{mirror.stats['messages_applied']} applied, "
        f"{mirror.stats['noise_ignored']} noise, {mirror.stats['errors']} errors"
    )
    return data


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='episodes: mark/episode instrumentation with a replayable line protocol',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Demo run with timeline output
    episodes --width 600

    # Replay a captured stream
    episodes --replay messages.log --width 800

    # Listener daemon with config file
    episodes --listen --config /etc/episodes/config.toml
        """
    )

    parser.add_argument(
        '--config', '-c',
        help='Path to TOML configuration file'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--replay', '-r',
        metavar='FILE',
        help="Replay a recorded message stream ('-' for stdin)"
    )
    parser.add_argument(
        '--listen',
        action='store_true',
        help='Run the listener daemon on a ZMQ PULL socket'
    )
    parser.add_argument(
        '--endpoint',
        help='ZMQ endpoint to bind in listen mode (overrides config)'
    )
    parser.add_argument(
        '--http-port',
        type=int,
        help='HTTP port for the listener server (0 to disable)'
    )
    parser.add_argument(
        '--beacon-url',
        help='Send a beacon to this URL on every done message'
    )
    parser.add_argument(
        '--width', '-w',
        type=float,
        help='Timeline width in pixels'
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(args.config)

    # Apply command-line overrides
    if args.endpoint:
        config['listener']['endpoint'] = args.endpoint
    if args.http_port is not None:
        config['listener']['http_port'] = args.http_port
    if args.beacon_url:
        config['beacon']['base_url'] = args.beacon_url

    timeline = config.get('timeline', {})
    margin = int(timeline.get('margin', 40))

    if args.listen:
        ListenerDaemon(config).start()
    elif args.replay:
        run_replay(args.replay, config, args.width, margin)
    else:
        run_demo(config, args.width or float(timeline.get('width', 800)), margin)


if __name__ == '__main__':
    main()
