"""Line protocol between registries and listeners."""

from .codec import decode, encode
from .messages import (
    Action,
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

__all__ = [
    'encode', 'decode', 'Action', 'Operation',
    'Mark', 'Measure', 'ClearMark', 'ClearEpisode',
    'ClearAllMarks', 'ClearAllEpisodes', 'Init', 'Done',
]
