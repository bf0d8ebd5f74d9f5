"""Output adapters - beacon reporter, snapshot file, HTTP listener server."""

from .formatters import default_formatter, make_boomerang_formatter
from .listener_server import ListenerServer
from .reporter import BeaconReporter
from .snapshot_writer import SnapshotReader, SnapshotWriter

__all__ = ['default_formatter', 'make_boomerang_formatter', 'ListenerServer',
           'BeaconReporter', 'SnapshotWriter', 'SnapshotReader']
