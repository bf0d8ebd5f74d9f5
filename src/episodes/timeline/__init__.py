"""Timeline layout for marks and episodes."""

from .layout import (
    DEFAULT_MARGIN_PX,
    ROW_HEIGHT_PX,
    TimelineBar,
    TimelineItem,
    collect_items,
    layout_episodes,
    layout_timeline,
    sort_items,
)

__all__ = [
    'TimelineItem', 'TimelineBar', 'collect_items', 'sort_items',
    'layout_timeline', 'layout_episodes', 'DEFAULT_MARGIN_PX', 'ROW_HEIGHT_PX',
]
