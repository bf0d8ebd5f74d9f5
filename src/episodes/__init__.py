"""
episodes: mark/episode latency instrumentation

Record named instants (marks) and named intervals (episodes) in a running
client, derive the standard page-load episodes automatically, and stream
every operation as single-line text messages to listeners that replay them
into an identical copy of the tables.

Architecture:
    TimeRegistry → codec → Channel → MirrorListener → timeline / beacon

Standard episodes:
    backend      starttime..firstbyte
    frontend     firstbyte..onload
    pageloadtime starttime..onload
    totaltime    starttime..done

Version: 0.2.0
"""

__version__ = "0.2.0"

from .engine.mirror import MirrorListener
from .engine.registry import RegistryConfig, TimeRegistry
from .interfaces.episode_data import EpisodeData
from .interfaces.platform import NavigationTiming, Platform, SystemPlatform
from .timeline.layout import TimelineBar, layout_episodes, layout_timeline
from .transport.base import Channel, InProcessChannel

__all__ = [
    "TimeRegistry",
    "RegistryConfig",
    "MirrorListener",
    "EpisodeData",
    "Platform",
    "SystemPlatform",
    "NavigationTiming",
    "Channel",
    "InProcessChannel",
    "TimelineBar",
    "layout_timeline",
    "layout_episodes",
    "__version__",
]
