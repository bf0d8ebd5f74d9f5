"""
Time Registry

Records named instants (marks) and named intervals (episodes) for one
client context and announces every change on a channel so listeners can
mirror it.

    registry = TimeRegistry(platform=SystemPlatform(), channel=channel)
    registry.mark('query_start')
    ...
    registry.measure('query', 'query_start')      # query_start..now
    registry.done()

Standard episodes are derived automatically:

    mark('firstbyte') -> backend      = starttime..firstbyte
    mark('onload')    -> frontend     = firstbyte..onload
                         pageloadtime = starttime..onload
    mark('done')      -> totaltime    = starttime..now

On construction the registry marks 'starttime' (navigation start, else a
start time recovered from the previous context, else now) and 'firstbyte'
(the platform's first-byte hint, else the start time). When the platform
signals load completion it marks 'onload' and, if enabled, turns the
platform's navigation timing into marks and episodes.

Public operations never raise: invalid input is logged and the operation
is dropped with the tables untouched.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

from ..constants import (
    DERIVED_EPISODES,
    DONE,
    END_SUFFIX,
    FIRST_BYTE,
    ON_LOAD,
    PREFIX,
    SEPARATOR,
    START_SUFFIX,
    START_TIME,
    CONNECT,
    DOMAIN_LOOKUP,
    DOM_COMPLETE,
    DOM_CONTENT_LOADED_EVENT,
    DOM_INTERACTIVE,
    DOM_LOADING,
    FETCH_START,
    LOAD_EVENT,
    NAVIGATION_START,
    REDIRECT,
    REQUEST,
    RESPONSE,
    SECURE_CONNECTION_START,
    UNLOAD_EVENT,
)
from ..errors import EpisodesError, ParseError, ValidationError
from ..interfaces.episode_data import EpisodeData
from ..interfaces.platform import NavigationTiming, Platform, SystemPlatform
from ..protocol import codec, messages
from ..transport.base import Channel
from .resolution import Reference, param_to_int, resolve_episode

logger = logging.getLogger(__name__)


@dataclass
class RegistryConfig:
    """Registry options, usually the [registry] table of the config file."""
    emit_messages: bool = True                  # Encode and send every operation
    include_platform_timing_marks: bool = True  # Ingest navigation timing on load
    auto_finalize: bool = False                 # Call done() when load completes
    debug_logging: bool = False                 # Log every operation

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistryConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown registry options: {sorted(unknown)}")
        return cls(**{k: bool(v) for k, v in data.items() if k in known})


def _timing_singles(tm: NavigationTiming):
    return (
        (DOM_COMPLETE, tm.dom_complete),
        (DOM_INTERACTIVE, tm.dom_interactive),
        (DOM_LOADING, tm.dom_loading),
        (FETCH_START, tm.fetch_start),
        (NAVIGATION_START, tm.navigation_start),
        (SECURE_CONNECTION_START, tm.secure_connection_start),
    )


def _timing_pairs(tm: NavigationTiming):
    # The request phase ends when the response starts
    return (
        (CONNECT, tm.connect_start, tm.connect_end),
        (DOMAIN_LOOKUP, tm.domain_lookup_start, tm.domain_lookup_end),
        (DOM_CONTENT_LOADED_EVENT,
         tm.dom_content_loaded_event_start, tm.dom_content_loaded_event_end),
        (LOAD_EVENT, tm.load_event_start, tm.load_event_end),
        (REDIRECT, tm.redirect_start, tm.redirect_end),
        (REQUEST, tm.request_start, tm.response_start),
        (RESPONSE, tm.response_start, tm.response_end),
        (UNLOAD_EVENT, tm.unload_event_start, tm.unload_event_end),
    )


class TimeRegistry:
    """
    Mark and episode tables for one client context.

    Construct one per context and pass it to the code being instrumented;
    there is no module-level instance.
    """

    def __init__(
        self,
        config: Optional[RegistryConfig] = None,
        platform: Optional[Platform] = None,
        channel: Optional[Channel] = None,
        prefix: str = PREFIX,
    ):
        """
        Initialize the registry.

        Args:
            config: Registry options (defaults: emit, ingest timing, no autorun)
            platform: Clock and lifecycle provider (default: SystemPlatform)
            channel: Where encoded operations are sent; None sends nothing
            prefix: Protocol prefix tag
        """
        self.config = config or RegistryConfig()
        self.platform = platform or SystemPlatform()
        self.channel = channel
        self.prefix = prefix
        self.data = EpisodeData()
        self.stats = {
            'messages_sent': 0,
            'errors': 0,
        }

        start_time = self.find_start_time()

        first_byte = self.platform.first_byte_hint()
        if first_byte is None:
            first_byte = start_time
        else:
            try:
                first_byte = param_to_int(first_byte)
            except ParseError:
                logger.warning(f"Ignoring malformed first byte hint {first_byte!r}")
                first_byte = start_time
        self.mark(FIRST_BYTE, first_byte)

        self.platform.on_context_exit(self._before_unload)
        self.platform.on_lifecycle_complete(self._on_load)

    # ------------------------------------------------------------------
    # Marks and episodes
    # ------------------------------------------------------------------

    def mark(self, name: str, time_ms: Optional[Reference] = None) -> Optional[int]:
        """
        Set a time marker.

        Args:
            name: Mark name; an existing mark of the same name is replaced
            time_ms: Epoch milliseconds (int, float or numeric string);
                     defaults to now

        Returns:
            The stored time, or None if nothing was stored (invalid input,
            or a time of 0 which marks an unsupported timing phase)
        """
        self._trace(messages.Action.MARK, name, time_ms)
        try:
            self._check_name(name, 'mark')
            resolved = self.platform.now() if time_ms is None else param_to_int(time_ms)
        except EpisodesError as e:
            self._fail('mark', e)
            return None

        if resolved == 0:
            return None

        self.data.set_mark(name, resolved)
        self._emit(messages.Mark(name, resolved))

        for episode_name, start_ref, end_ref in DERIVED_EPISODES.get(name, ()):
            self.measure(episode_name, start_ref, end_ref)

        return resolved

    def measure(
        self,
        episode_name: str,
        start_ref: Optional[Reference] = None,
        end_ref: Optional[Reference] = None,
    ) -> Optional[Tuple[int, int]]:
        """
        Record an episode.

        Each reference is the name of an existing mark or a literal epoch
        time. Without a start reference the mark named episode_name is used,
        or now if there is none; without an end reference, now.

        Returns:
            (start, duration), or None if the episode could not be resolved
        """
        now = self.platform.now()
        self._trace(messages.Action.MEASURE, episode_name, start_ref, end_ref)
        try:
            self._check_name(episode_name, 'episode')
            start, end = resolve_episode(self.data, episode_name, start_ref, end_ref, now)
        except EpisodesError as e:
            self._fail('measure', e)
            return None

        duration = end - start
        self.data.set_episode(episode_name, start, duration)
        self._emit(messages.Measure(episode_name, str(start), str(end)))
        return start, duration

    def done(self):
        """
        Signal that all episodes are recorded and reporting can start.

        Marks 'done' (deriving 'totaltime') and sends the done message.
        """
        self._trace(messages.Action.DONE)
        self.mark(DONE)
        self._emit(messages.Done())

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    def clear_mark(self, name: str):
        """Remove one mark, if it exists."""
        self._trace(messages.Action.CLEAR_MARK, name)
        self.data.clear_mark(name)
        if name:
            self._emit(messages.ClearMark(name))

    def clear_episode(self, episode_name: str):
        """Remove one episode, if it exists. Marks are untouched."""
        self._trace(messages.Action.CLEAR_EPISODE, episode_name)
        self.data.clear_episode(episode_name)
        if episode_name:
            self._emit(messages.ClearEpisode(episode_name))

    def clear_all_marks(self):
        """Remove all marks; episodes are untouched."""
        self._trace(messages.Action.CLEAR_ALL_MARKS)
        self.data.clear_marks()
        self._emit(messages.ClearAllMarks())

    def clear_all_episodes(self):
        """Remove all episodes; marks are untouched."""
        self._trace(messages.Action.CLEAR_ALL_EPISODES)
        self.data.clear_episodes()
        self._emit(messages.ClearAllEpisodes())

    def clear_all(self):
        """Remove all marks and episodes."""
        self._trace(messages.Action.INIT)
        self.clear_all_marks()
        self.clear_all_episodes()
        self._emit(messages.Init())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_mark(self, name: str) -> Optional[int]:
        return self.data.get_mark(name)

    def get_episode_start(self, episode_name: str) -> Optional[int]:
        return self.data.starts.get(episode_name)

    def get_episode_duration(self, episode_name: str) -> Optional[int]:
        return self.data.measures.get(episode_name)

    @property
    def marks(self) -> Dict[str, int]:
        return dict(self.data.marks)

    @property
    def starts(self) -> Dict[str, int]:
        return dict(self.data.starts)

    @property
    def measures(self) -> Dict[str, int]:
        return dict(self.data.measures)

    def snapshot(self) -> EpisodeData:
        """Copy of the current tables."""
        return self.data.copy()

    # ------------------------------------------------------------------
    # Platform integration
    # ------------------------------------------------------------------

    def find_start_time(self) -> int:
        """
        Determine when this context started and mark it as 'starttime'.

        Tries navigation timing, then a start time left by the previous
        context, then falls back to now.
        """
        start_time: Optional[int] = None
        timing = self.platform.navigation_timing()
        if timing is not None and timing.navigation_start:
            start_time = timing.navigation_start
            logger.debug(f"Start time from navigation timing: {start_time}")

        if start_time is None:
            start_time = self.platform.recover_cross_context_start_time()

        if start_time is None:
            start_time = self.platform.now()

        self.mark(START_TIME, start_time)
        return start_time

    def ingest_navigation_timing(self, timing: NavigationTiming):
        """
        Create marks and episodes from navigation timing.

        Zero-valued fields are phases that did not happen: single marks are
        skipped by mark(), and pairs whose end is zero are skipped entirely.
        """
        for name, value in _timing_singles(timing):
            self.mark(name, value)

        for name, start, end in _timing_pairs(timing):
            if end > 0:
                self.mark(name + START_SUFFIX, start)
                self.mark(name + END_SUFFIX, end)
                self.measure(name, start, end)

    def _on_load(self):
        """Load-complete handler: onload mark, timing marks, optional done()."""
        self.mark(ON_LOAD)

        if self.config.include_platform_timing_marks:
            timing = self.platform.navigation_timing()
            if timing is not None:
                self.ingest_navigation_timing(timing)

        if self.config.auto_finalize:
            self.done()

    def _before_unload(self):
        """Context exit handler: leave our exit time as the next start time."""
        try:
            self.platform.store_cross_context_start_time(self.platform.now())
        except OSError as e:
            logger.warning(f"Failed to store start time: {e}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_name(self, name: Optional[str], what: str):
        if not name or not isinstance(name, str):
            raise ValidationError(f"{what} name is required")
        if SEPARATOR in name or "\n" in name or "\r" in name:
            raise ValidationError(f"{what} name {name!r} contains a reserved character")
        try:
            param_to_int(name)
        except ParseError:
            return
        # A numeric name would shadow literal times on the listener side
        raise ValidationError(f"{what} name {name!r} must not be a number")

    def _fail(self, operation: str, error: EpisodesError):
        self.stats['errors'] += 1
        logger.error(f"{operation}() failed: {error}")

    def _trace(self, action: messages.Action, *args):
        if self.config.debug_logging:
            parts = [self.prefix, action.value] + ['' if a is None else str(a) for a in args]
            logger.info(SEPARATOR.join(parts))

    def _emit(self, op: messages.Operation):
        if not self.config.emit_messages or self.channel is None:
            return
        try:
            line = codec.encode(op, self.prefix)
            self.channel.send(line)
            self.stats['messages_sent'] += 1
        except Exception as e:
            logger.warning(f"Failed to send {op.action.value} message: {e}")
