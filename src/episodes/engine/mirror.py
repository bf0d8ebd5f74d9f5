"""
Mirror Listener

Rebuilds a registry's mark and episode tables from its message stream.

The mirror has no derivations of its own: it only replays what it
receives, using the same reference resolution as TimeRegistry.measure().
Provided lines arrive in the order sent and none are dropped, its tables
end up equal to the registry's.

Every 'done' message runs the completion action once. Repeated 'done'
messages are independent completions, not duplicates.

Usage:
    mirror = MirrorListener(on_done=lambda data: print(data.measures))
    for line in lines:
        mirror.handle_line(line)
"""

import logging
import time
from typing import Callable, Optional

from ..constants import PREFIX
from ..errors import EpisodesError
from ..interfaces.episode_data import EpisodeData
from ..protocol import codec
from ..protocol.messages import (
    ClearAllEpisodes,
    ClearAllMarks,
    ClearEpisode,
    ClearMark,
    Done,
    Init,
    Mark,
    Measure,
    Operation,
)
from ..transport.base import Channel
from .resolution import resolve_episode

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class MirrorListener:
    """Listener-side replica of a registry's tables."""

    def __init__(
        self,
        on_done: Optional[Callable[[EpisodeData], None]] = None,
        clock: Optional[Callable[[], int]] = None,
        prefix: str = PREFIX,
    ):
        """
        Initialize the mirror.

        Args:
            on_done: Completion action, called with a snapshot per 'done'
            clock: Epoch-ms clock for marks/measures sent without times
            prefix: Protocol prefix tag to accept
        """
        self.on_done = on_done
        self.clock = clock or _wall_clock_ms
        self.prefix = prefix
        self.data = EpisodeData()
        self.stats = {
            'lines_received': 0,
            'messages_applied': 0,
            'noise_ignored': 0,
            'errors': 0,
            'done_count': 0,
        }

    @property
    def done_count(self) -> int:
        return self.stats['done_count']

    def handle_line(self, line: str) -> bool:
        """
        Decode and replay one line.

        Returns:
            True if the line was an episodes message that took effect
        """
        self.stats['lines_received'] += 1
        try:
            op = codec.decode(line, self.prefix)
        except EpisodesError as e:
            self.stats['errors'] += 1
            logger.error(f"Dropping malformed message {line!r}: {e}")
            return False

        if op is None:
            self.stats['noise_ignored'] += 1
            return False

        return self.apply(op)

    def apply(self, op: Operation) -> bool:
        """
        Replay one decoded operation against the mirror's tables.

        Returns:
            True if the operation took effect
        """
        try:
            match op:
                case Mark(name=name, time=time_ms):
                    if time_ms is None:
                        time_ms = self.clock()
                    if time_ms != 0:
                        self.data.set_mark(name, time_ms)
                case Measure(episode_name=name, start_ref=start_ref, end_ref=end_ref):
                    start, end = resolve_episode(
                        self.data, name, start_ref, end_ref, self.clock()
                    )
                    self.data.set_episode(name, start, end - start)
                case ClearMark(name=name):
                    self.data.clear_mark(name)
                case ClearEpisode(episode_name=name):
                    self.data.clear_episode(name)
                case ClearAllMarks():
                    self.data.clear_marks()
                case ClearAllEpisodes():
                    self.data.clear_episodes()
                case Init():
                    self.data.clear()
                case Done():
                    self.stats['done_count'] += 1
                    self._complete()
        except EpisodesError as e:
            self.stats['errors'] += 1
            logger.error(f"Failed to apply {op.action.value}: {e}")
            return False

        self.stats['messages_applied'] += 1
        return True

    def consume(self, channel: Channel, timeout: Optional[float] = None,
                max_lines: Optional[int] = None) -> int:
        """
        Replay lines from a channel in arrival order.

        Args:
            channel: Channel to read from
            timeout: Seconds to wait for each line; None stops when empty
            max_lines: Stop after this many lines

        Returns:
            Number of lines read
        """
        count = 0
        while max_lines is None or count < max_lines:
            line = channel.receive(timeout)
            if line is None:
                break
            self.handle_line(line)
            count += 1
        return count

    def snapshot(self) -> EpisodeData:
        """Copy of the mirrored tables."""
        return self.data.copy()

    def _complete(self):
        if self.on_done is None:
            logger.info(
                f"Done: {len(self.data.marks)} marks, {len(self.data.measures)} episodes"
            )
            return
        try:
            self.on_done(self.snapshot())
        except Exception as e:
            logger.exception(f"Completion action failed: {e}")
