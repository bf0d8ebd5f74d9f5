"""Data contracts shared by registries, mirrors and exporters."""

from .episode_data import EpisodeData
from .platform import NavigationTiming, Platform, SystemPlatform

__all__ = ['EpisodeData', 'NavigationTiming', 'Platform', 'SystemPlatform']
