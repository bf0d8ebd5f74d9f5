"""
Beacon Reporter

A mirror that, on every 'done' message, formats the mirrored tables into a
beacon URL and hands it to a sender (by default an HTTP GET).

Usage:
    reporter = BeaconReporter('http://collector.local/beacon.gif')
    for line in channel.drain():
        reporter.listener.handle_line(line)
"""

import logging
import urllib.request
from typing import Callable, List, Optional

from ..engine.mirror import MirrorListener
from ..interfaces.episode_data import EpisodeData
from .formatters import Formatter, default_formatter

logger = logging.getLogger(__name__)


def http_get_sender(url: str, timeout: float = 5.0) -> bool:
    """
    Send a beacon as an HTTP GET and discard the body.

    Returns:
        True if the collector answered with a 2xx status
    """
    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            response.read()
            return 200 <= response.status < 300
    except Exception as e:
        logger.warning(f"Beacon GET failed for {url}: {e}")
        return False


class BeaconReporter:
    """
    Mirror plus beacon export.

    Each 'done' is its own export: two 'done' messages send two beacons.
    """

    def __init__(
        self,
        base_url: str,
        formatter: Optional[Formatter] = None,
        sender: Optional[Callable[[str], object]] = None,
        done_callback: Optional[Callable[[str], None]] = None,
        listener: Optional[MirrorListener] = None,
    ):
        """
        Initialize the reporter.

        Args:
            base_url: Beacon address, passed to the formatter
            formatter: URL formatter (default: default_formatter)
            sender: Called with each beacon URL (default: http_get_sender)
            done_callback: Called with the URL after it was sent, typically
                           to reset state for the next report
            listener: Mirror to attach to (default: a new MirrorListener)
        """
        self.base_url = base_url
        self.formatter = formatter or default_formatter
        self.sender = sender or http_get_sender
        self.done_callback = done_callback
        self.listener = listener or MirrorListener()
        self.listener.on_done = self.send_beacon
        self.sent_urls: List[str] = []

    def send_beacon(self, data: EpisodeData) -> str:
        """Format and send one beacon for the given tables."""
        url = self.formatter(self.base_url, data.marks, data.starts, data.measures)
        logger.info(f"Sending beacon: {url}")
        self.sender(url)
        self.sent_urls.append(url)
        if self.done_callback is not None:
            self.done_callback(url)
        return url
