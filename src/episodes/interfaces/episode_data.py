"""
Episode Data Model

The three tables every registry and mirror holds, and the snapshot format
shared with listeners, exporters and the timeline layout.

    marks:    name -> epoch milliseconds
    starts:   episode name -> epoch milliseconds
    measures: episode name -> duration in milliseconds

Episode start and duration are kept in separate tables so an episode can be
placed on an absolute timeline, not only reported as a duration.

Contract Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import json
import time


@dataclass
class EpisodeData:
    """
    Mark and episode tables.

    Marks and episodes are independent namespaces: clearing one never
    touches the other.
    """
    marks: Dict[str, int] = field(default_factory=dict)
    starts: Dict[str, int] = field(default_factory=dict)
    measures: Dict[str, int] = field(default_factory=dict)

    # Mark table

    def set_mark(self, name: str, time_ms: int):
        self.marks[name] = time_ms

    def get_mark(self, name: str) -> Optional[int]:
        return self.marks.get(name)

    def clear_mark(self, name: str):
        self.marks.pop(name, None)

    def clear_marks(self):
        self.marks.clear()

    # Episode tables

    def set_episode(self, name: str, start: int, duration: int):
        self.starts[name] = start
        self.measures[name] = duration

    def get_episode(self, name: str) -> Optional[Tuple[int, int]]:
        """Return (start, duration) for an episode, or None."""
        if name not in self.measures:
            return None
        return self.starts[name], self.measures[name]

    def clear_episode(self, name: str):
        self.starts.pop(name, None)
        self.measures.pop(name, None)

    def clear_episodes(self):
        self.starts.clear()
        self.measures.clear()

    def clear(self):
        self.clear_marks()
        self.clear_episodes()

    def episodes(self) -> List[Tuple[str, int, int]]:
        """List episodes as (name, start, end) in insertion order."""
        return [
            (name, self.starts[name], self.starts[name] + duration)
            for name, duration in self.measures.items()
        ]

    def copy(self) -> "EpisodeData":
        return EpisodeData(
            marks=dict(self.marks),
            starts=dict(self.starts),
            measures=dict(self.measures),
        )

    def to_json(self, generated_at: Optional[float] = None) -> str:
        """Serialize to JSON for snapshot files and HTTP status."""
        data = {
            "version": "1.0.0",
            "generated_at": generated_at if generated_at is not None else time.time(),
            "marks": self.marks,
            "starts": self.starts,
            "measures": self.measures,
        }
        return json.dumps(data, indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "EpisodeData":
        """Deserialize from JSON."""
        data = json.loads(json_str)
        return cls(
            marks={k: int(v) for k, v in data.get("marks", {}).items()},
            starts={k: int(v) for k, v in data.get("starts", {}).items()},
            measures={k: int(v) for k, v in data.get("measures", {}).items()},
        )
