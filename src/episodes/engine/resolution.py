"""
Time and reference resolution shared by the registry and the mirror.

Both sides must resolve measure() references identically, otherwise a
mirror replaying the message stream drifts from the registry it follows.
"""

from typing import Optional, Tuple, Union

from ..constants import MAX_TIME_MS
from ..errors import ParseError
from ..interfaces.episode_data import EpisodeData

Reference = Union[str, int, float]


def param_to_int(value: Reference) -> int:
    """
    Turn a user-supplied time into integer milliseconds.

    Integers pass through, floats are truncated, anything else is parsed as
    a decimal number and truncated ("1000", "1000.7", "1e3"). Results beyond
    +/-MAX_TIME_MS are rejected.

    Raises:
        ParseError: If the value is not a number or is out of range
    """
    if isinstance(value, bool):
        raise ParseError(f"Malformed time {value!r}")
    if isinstance(value, int):
        result = value
    else:
        try:
            result = int(float(value))
        except (TypeError, ValueError, OverflowError):
            raise ParseError(f"Malformed time {value!r}") from None
    if abs(result) > MAX_TIME_MS:
        raise ParseError(f"Time {value!r} out of range")
    return result


def resolve_reference(data: EpisodeData, ref: Reference) -> int:
    """
    Resolve a measure() reference against a mark table.

    An existing mark name wins; otherwise the reference must be a literal
    epoch time.
    """
    if isinstance(ref, str):
        marked = data.get_mark(ref)
        if marked is not None:
            return marked
    return param_to_int(ref)


def resolve_episode(
    data: EpisodeData,
    episode_name: str,
    start_ref: Optional[Reference],
    end_ref: Optional[Reference],
    now: int,
) -> Tuple[int, int]:
    """
    Resolve the (start, end) of an episode.

    An omitted start defaults to the mark named after the episode, or now;
    an omitted end defaults to now.

    Raises:
        ParseError: If a supplied reference is neither a mark nor a number
    """
    if start_ref is None:
        start = data.get_mark(episode_name)
        if start is None:
            start = now
    else:
        start = resolve_reference(data, start_ref)

    if end_ref is None:
        end = now
    else:
        end = resolve_reference(data, end_ref)

    return start, end
