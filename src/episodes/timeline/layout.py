"""
Timeline Layout

Turns episodes (and marks) into bar geometry for a horizontal timeline:
one bar per row, left edge and width scaled linearly into the available
pixels.

    items = collect_items(registry.snapshot())
    for bar in layout_timeline(items, available_width=800):
        print(bar.name, bar.left_px, bar.width_px, bar.top_px)

Ordering: start ascending, then end descending, so among items starting
together the one that finishes last is drawn first. Items that tie on both
keep their input order.

Pure functions; no state is kept between calls.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Sequence

import numpy as np

from ..interfaces.episode_data import EpisodeData

DEFAULT_MARGIN_PX = 40
ROW_HEIGHT_PX = 30


@dataclass(frozen=True)
class TimelineItem:
    """An interval to lay out; marks have start == end."""
    name: str
    start: int
    end: int


@dataclass(frozen=True)
class TimelineBar:
    """Geometry for one row of the timeline."""
    name: str
    left_px: int
    width_px: int
    row: int
    duration_ms: int

    @property
    def top_px(self) -> int:
        return self.row * ROW_HEIGHT_PX

    def to_dict(self) -> Dict[str, int]:
        result = asdict(self)
        result['top_px'] = self.top_px
        return result


def collect_items(data: EpisodeData, include_marks: bool = True) -> List[TimelineItem]:
    """
    Build the item list: every episode, plus every mark that does not share
    its name with an episode (as a zero-width item).
    """
    items = [TimelineItem(name, start, end) for name, start, end in data.episodes()]
    if include_marks:
        items.extend(
            TimelineItem(name, time_ms, time_ms)
            for name, time_ms in data.marks.items()
            if name not in data.measures
        )
    return items


def sort_items(items: Sequence[TimelineItem]) -> List[TimelineItem]:
    """Sort by start ascending, end descending; stable for full ties."""
    if not items:
        return []
    starts = np.array([item.start for item in items], dtype=np.int64)
    ends = np.array([item.end for item in items], dtype=np.int64)
    # lexsort: last key is primary
    order = np.lexsort((-ends, starts))
    return [items[i] for i in order]


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return (np.sign(values) * np.floor(np.abs(values) + 0.5)).astype(np.int64)


def layout_timeline(
    items: Sequence[TimelineItem],
    available_width: float,
    margin_px: int = DEFAULT_MARGIN_PX,
) -> List[TimelineBar]:
    """
    Lay out items as one bar per row.

    Args:
        items: Episodes and marks to draw
        available_width: Pixels spanning the earliest start to the latest end
        margin_px: Offset added to every bar's left edge

    Returns:
        Bars in draw order (row == index). When every item starts and ends
        at the same instant the scale is zero: all bars sit at the margin
        with zero width.
    """
    ordered = sort_items(items)
    if not ordered:
        return []

    starts = np.array([item.start for item in ordered], dtype=np.int64)
    ends = np.array([item.end for item in ordered], dtype=np.int64)

    t_first = int(starts.min())
    t_last = int(ends.max())
    span = t_last - t_first
    px_per_ms = available_width / span if span > 0 else 0.0

    lefts = _round_half_away(px_per_ms * (starts - t_first).astype(np.float64)) + margin_px
    widths = _round_half_away(px_per_ms * (ends - starts).astype(np.float64))

    return [
        TimelineBar(
            name=item.name,
            left_px=int(lefts[row]),
            width_px=int(widths[row]),
            row=row,
            duration_ms=item.end - item.start,
        )
        for row, item in enumerate(ordered)
    ]


def layout_episodes(
    data: EpisodeData,
    available_width: float,
    margin_px: int = DEFAULT_MARGIN_PX,
    include_marks: bool = True,
) -> List[TimelineBar]:
    """Convenience wrapper: collect_items() then layout_timeline()."""
    return layout_timeline(collect_items(data, include_marks), available_width, margin_px)
