"""Exceptions raised inside the registry, codec and mirror.

None of these escape the public registry or mirror operations: they are
caught per operation, logged, and the operation is dropped.
"""


class EpisodesError(Exception):
    """Base class for episodes errors."""


class ValidationError(EpisodesError):
    """A required mark or episode name was missing."""


class ParseError(EpisodesError):
    """A time or reference could not be converted to integer milliseconds."""


class ProtocolError(EpisodesError):
    """A message carried the episodes prefix but could not be decoded or encoded."""
