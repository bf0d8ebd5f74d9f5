"""
Platform Clock & Lifecycle

The registry never talks to a concrete runtime. It asks a Platform for
the current time, for navigation timing, and for a start time carried over
from a previous context, and it subscribes to the platform's lifecycle
signals.

SystemPlatform is the default implementation for ordinary Python
processes:
    - now() comes from time.time()
    - lifecycle completion is fired explicitly with complete()
    - context exit is an atexit hook
    - the cross-context start time is a small JSON file, written atomically
      at exit and accepted on the next start only if the new context names
      the previous page as its referrer

Usage:
    platform = SystemPlatform(page='checkout', referrer='cart')
    registry = TimeRegistry(platform=platform)
    ...
    platform.complete()   # fires onload derivations
"""

import atexit
import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class NavigationTiming:
    """
    Navigation timing fields in epoch milliseconds.

    A zero value means the phase did not occur (or is unsupported).
    """
    navigation_start: int = 0
    unload_event_start: int = 0
    unload_event_end: int = 0
    redirect_start: int = 0
    redirect_end: int = 0
    fetch_start: int = 0
    domain_lookup_start: int = 0
    domain_lookup_end: int = 0
    connect_start: int = 0
    connect_end: int = 0
    secure_connection_start: int = 0
    request_start: int = 0
    response_start: int = 0
    response_end: int = 0
    dom_loading: int = 0
    dom_interactive: int = 0
    dom_content_loaded_event_start: int = 0
    dom_content_loaded_event_end: int = 0
    dom_complete: int = 0
    load_event_start: int = 0
    load_event_end: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "NavigationTiming":
        """Build from a dict, accepting snake_case or camelCase keys."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            snake = ''.join('_' + c.lower() if c.isupper() else c for c in key)
            if snake in known:
                values[snake] = int(value or 0)
        return cls(**values)


class Platform(ABC):
    """Clock and lifecycle capability the registry depends on."""

    @abstractmethod
    def now(self) -> int:
        """Current time in epoch milliseconds."""

    @abstractmethod
    def on_lifecycle_complete(self, callback: Callable[[], None]):
        """Register a callback for the load-complete signal."""

    @abstractmethod
    def recover_cross_context_start_time(self) -> Optional[int]:
        """Start time handed over by a previous context, if any."""

    def navigation_timing(self) -> Optional[NavigationTiming]:
        """Platform navigation timing, if the platform records it."""
        return None

    def first_byte_hint(self) -> Optional[Union[int, str]]:
        """Approximate first-byte time supplied by the host, if any."""
        return None

    def on_context_exit(self, callback: Callable[[], None]):
        """Register a callback for when this context is torn down."""

    def store_cross_context_start_time(self, time_ms: int):
        """Persist a start time for the next context."""


class SystemPlatform(Platform):
    """
    Platform backed by the wall clock and a start-time file.
    """

    DEFAULT_START_FILE = Path(tempfile.gettempdir()) / "episodes_start.json"

    def __init__(
        self,
        page: str = "",
        referrer: Optional[str] = None,
        start_file: Optional[Union[str, Path]] = None,
        timing: Optional[NavigationTiming] = None,
        first_byte: Optional[Union[int, str]] = None,
        register_atexit: bool = True,
    ):
        """
        Initialize the platform.

        Args:
            page: Identifier of the current context (stored with the start time)
            referrer: Identifier of the context that led here; the stored
                      start time is only recovered when it matches
            start_file: Path of the start-time file
            timing: Navigation timing to report on load
            first_byte: First-byte hint (epoch ms, int or numeric string)
            register_atexit: Hook context exit callbacks into atexit
        """
        self.page = page
        self.referrer = referrer
        self.start_file = Path(start_file or self.DEFAULT_START_FILE)
        self.timing = timing
        self.first_byte = first_byte
        self._lifecycle_callbacks: List[Callable[[], None]] = []
        self._exit_callbacks: List[Callable[[], None]] = []
        self._completed = False
        if register_atexit:
            atexit.register(self._run_exit_callbacks)

    def now(self) -> int:
        return int(time.time() * 1000)

    def navigation_timing(self) -> Optional[NavigationTiming]:
        return self.timing

    def first_byte_hint(self) -> Optional[Union[int, str]]:
        return self.first_byte

    def on_lifecycle_complete(self, callback: Callable[[], None]):
        self._lifecycle_callbacks.append(callback)

    def on_context_exit(self, callback: Callable[[], None]):
        self._exit_callbacks.append(callback)

    def complete(self):
        """Fire the load-complete signal (once)."""
        if self._completed:
            logger.warning("Lifecycle already completed")
            return
        self._completed = True
        for callback in self._lifecycle_callbacks:
            callback()

    def _run_exit_callbacks(self):
        for callback in self._exit_callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Exit callback failed: {e}")

    def recover_cross_context_start_time(self) -> Optional[int]:
        """
        Read the start time left by the previous context.

        Returns:
            Epoch milliseconds, or None if there is no file, it is invalid,
            or it was written by a page other than our referrer
        """
        try:
            if not self.start_file.exists():
                return None

            with open(self.start_file, 'r') as f:
                data = json.load(f)

            if self.referrer is None or data.get('page') != self.referrer:
                return None

            start_time = int(data['start_time'])
            logger.info(f"Recovered start time {start_time} from {self.start_file}")
            return start_time

        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to read start time: {e}")
            return None

    def store_cross_context_start_time(self, time_ms: int):
        """
        Write the start time for the next context.

        Uses atomic write (temp file + rename) to prevent partial reads.
        """
        payload = json.dumps({'start_time': time_ms, 'page': self.page})
        self.start_file.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.start_file.parent,
            prefix='.episodes_start_',
            suffix='.tmp'
        )
        try:
            with os.fdopen(fd, 'w') as f:
                f.write(payload)
            os.rename(temp_path, self.start_file)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
