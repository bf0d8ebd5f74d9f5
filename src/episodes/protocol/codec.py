"""
Episodes Line Protocol

Every registry operation travels as a single line of text:

    <prefix>:<action>:<field>*

    EPISODES:mark:m1:1000
    EPISODES:mark:m1:                 (time not supplied)
    EPISODES:measure:load:1000:1450
    EPISODES:clearMark:m1
    EPISODES:clearAllEpisodes
    EPISODES:done

An empty field means "value not supplied" and decodes to None. Lines whose
first field is not the prefix are noise from other senders sharing the
transport; decode() returns None for them instead of raising.

Names cannot contain the separator, so encode() refuses them rather than
emitting a line that would decode differently.
"""

import logging
import re
from typing import List, Optional

from ..constants import MAX_TIME_MS, PREFIX, SEPARATOR
from ..errors import ProtocolError
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

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"-?[0-9]+")


def _check_name(name: Optional[str], what: str) -> str:
    if not name:
        raise ProtocolError(f"{what} is required")
    if SEPARATOR in name or '\n' in name or '\r' in name:
        raise ProtocolError(f"{what} {name!r} contains a reserved character")
    return name


def _check_ref(ref: Optional[str], what: str) -> str:
    if ref is None:
        return ''
    ref = str(ref)
    if SEPARATOR in ref or '\n' in ref or '\r' in ref:
        raise ProtocolError(f"{what} {ref!r} contains a reserved character")
    return ref


def encode(op: Operation, prefix: str = PREFIX) -> str:
    """
    Encode an operation as one protocol line (no trailing newline).

    Raises:
        ProtocolError: If a required name is missing or contains ':'
    """
    match op:
        case Mark(name=name, time=time_ms):
            fields = [_check_name(name, 'mark name'),
                      '' if time_ms is None else str(int(time_ms))]
        case Measure(episode_name=name, start_ref=start_ref, end_ref=end_ref):
            fields = [_check_name(name, 'episode name'),
                      _check_ref(start_ref, 'start reference'),
                      _check_ref(end_ref, 'end reference')]
        case ClearMark(name=name):
            fields = [_check_name(name, 'mark name')]
        case ClearEpisode(episode_name=name):
            fields = [_check_name(name, 'episode name')]
        case ClearAllMarks() | ClearAllEpisodes() | Init() | Done():
            fields = []
        case _:
            raise ProtocolError(f"Cannot encode {op!r}")

    return SEPARATOR.join([prefix, op.action.value] + fields)


def _field(fields: List[str], index: int) -> Optional[str]:
    """Field at index, or None if absent or empty."""
    if index < len(fields) and fields[index] != '':
        return fields[index]
    return None


def _required(fields: List[str], index: int, what: str) -> str:
    value = _field(fields, index)
    if value is None:
        raise ProtocolError(f"Missing {what}")
    return value


def decode(line: str, prefix: str = PREFIX) -> Optional[Operation]:
    """
    Decode one protocol line.

    Args:
        line: Message text; a trailing newline is ignored
        prefix: Expected prefix tag

    Returns:
        The operation, or None if the line is not an episodes message

    Raises:
        ProtocolError: If the line has our prefix but is malformed
    """
    line = line.rstrip('\r\n')
    parts = line.split(SEPARATOR)
    if parts[0] != prefix:
        logger.debug(f"Ignoring non-episodes line: {line!r}")
        return None

    if len(parts) < 2:
        raise ProtocolError(f"Missing action in {line!r}")

    try:
        action = Action(parts[1])
    except ValueError:
        raise ProtocolError(f"Unknown action {parts[1]!r}") from None

    fields = parts[2:]

    match action:
        case Action.MARK:
            name = _required(fields, 0, 'mark name')
            time_text = _field(fields, 1)
            time_ms = None
            if time_text is not None:
                if not _INTEGER.fullmatch(time_text):
                    raise ProtocolError(f"Malformed mark time {time_text!r}")
                time_ms = int(time_text)
                if abs(time_ms) > MAX_TIME_MS:
                    raise ProtocolError(f"Mark time {time_text!r} out of range")
            return Mark(name, time_ms)
        case Action.MEASURE:
            return Measure(
                _required(fields, 0, 'episode name'),
                _field(fields, 1),
                _field(fields, 2),
            )
        case Action.CLEAR_MARK:
            return ClearMark(_required(fields, 0, 'mark name'))
        case Action.CLEAR_EPISODE:
            return ClearEpisode(_required(fields, 0, 'episode name'))
        case Action.CLEAR_ALL_MARKS:
            return ClearAllMarks()
        case Action.CLEAR_ALL_EPISODES:
            return ClearAllEpisodes()
        case Action.INIT:
            return Init()
        case Action.DONE:
            return Done()
