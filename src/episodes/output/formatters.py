"""
Beacon URL formatters.

A formatter turns the mirrored tables into the address a beacon is sent
to. Every formatter has the same signature:

    formatter(base_url, marks, starts, measures) -> url

default_formatter matches the classic episodes beacon:

    /beacon.gif?ets=backend:120,frontend:480&v=0.2

make_boomerang_formatter() builds a formatter for Yahoo Boomerang
collectors (http://yahoo.github.com/boomerang/doc/).
"""

from typing import Callable, Dict, Optional
from urllib.parse import quote

from ..constants import BEACON_VERSION, BOOMERANG_REMAP, BOOMERANG_VERSION

Formatter = Callable[[str, Dict[str, int], Dict[str, int], Dict[str, int]], str]

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def default_formatter(
    base_url: str,
    marks: Dict[str, int],
    starts: Dict[str, int],
    measures: Dict[str, int],
) -> str:
    """Report episode durations as comma-separated name:ms pairs."""
    times = ','.join(
        f"{encode_uri_component(name)}:{duration}"
        for name, duration in measures.items()
    )
    return f"{base_url}?ets={times}&v={BEACON_VERSION}"


def make_boomerang_formatter(
    page_url: str,
    scheme: str = 'http',
    redirect_count: Optional[int] = None,
    navigation_type: Optional[int] = None,
) -> Formatter:
    """
    Build a Boomerang-compatible formatter.

    Args:
        page_url: URL of the measured page (the u= parameter)
        scheme: Scheme prepended to the base address
        redirect_count: Navigation redirect count, if known
        navigation_type: Navigation type code, if known

    Returns:
        Formatter producing <scheme>://<base>?v=1&u=<page>&nt_...=<time>...
    """
    def boomerang_formatter(
        base_url: str,
        marks: Dict[str, int],
        starts: Dict[str, int],
        measures: Dict[str, int],
    ) -> str:
        params = ''
        if redirect_count is not None and navigation_type is not None:
            params = f"&nt_red_cnt={redirect_count}&nt_nav_type={navigation_type}"

        for mark_name, param in BOOMERANG_REMAP.items():
            mark_time = marks.get(mark_name)
            if mark_time:
                params += f"&{param}={mark_time}"

        return f"{scheme}://{base_url}?v={BOOMERANG_VERSION}&u={page_url}{params}"

    return boomerang_formatter

