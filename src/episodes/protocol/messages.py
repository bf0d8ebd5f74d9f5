"""
Protocol operations.

Each action on the wire is a frozen dataclass; the union Operation is the
closed set the codec and mirror dispatch over.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Action(str, Enum):
    """Action tags (second field of every message)."""
    MARK = "mark"
    MEASURE = "measure"
    CLEAR_MARK = "clearMark"
    CLEAR_EPISODE = "clearEpisode"
    CLEAR_ALL_MARKS = "clearAllMarks"
    CLEAR_ALL_EPISODES = "clearAllEpisodes"
    INIT = "init"
    DONE = "done"


@dataclass(frozen=True)
class Mark:
    name: str
    time: Optional[int] = None       # None: receiver uses its own clock

    action = Action.MARK


@dataclass(frozen=True)
class Measure:
    """
    Record an episode.

    References are mark names or literal epoch times, kept as text exactly
    as they travel on the wire.
    """
    episode_name: str
    start_ref: Optional[str] = None
    end_ref: Optional[str] = None

    action = Action.MEASURE


@dataclass(frozen=True)
class ClearMark:
    name: str

    action = Action.CLEAR_MARK


@dataclass(frozen=True)
class ClearEpisode:
    episode_name: str

    action = Action.CLEAR_EPISODE


@dataclass(frozen=True)
class ClearAllMarks:
    action = Action.CLEAR_ALL_MARKS


@dataclass(frozen=True)
class ClearAllEpisodes:
    action = Action.CLEAR_ALL_EPISODES


@dataclass(frozen=True)
class Init:
    """Reset: the receiver clears marks and episodes."""
    action = Action.INIT


@dataclass(frozen=True)
class Done:
    """Terminal signal: the receiver runs its completion action."""
    action = Action.DONE


Operation = Union[
    Mark, Measure, ClearMark, ClearEpisode,
    ClearAllMarks, ClearAllEpisodes, Init, Done,
]
