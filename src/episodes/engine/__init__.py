"""Registry and mirror - the two ends of the message stream.

Contains:
- TimeRegistry: records marks/episodes and emits protocol lines
- MirrorListener: replays protocol lines into its own tables
"""

from .mirror import MirrorListener
from .registry import RegistryConfig, TimeRegistry
from .resolution import param_to_int, resolve_reference

__all__ = ['TimeRegistry', 'RegistryConfig', 'MirrorListener',
           'param_to_int', 'resolve_reference']
