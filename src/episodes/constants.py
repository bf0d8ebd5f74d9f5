"""
Protocol tags and reserved mark/episode names.

These strings appear verbatim on the wire and in exported beacons, so they
must not change between a registry and the listeners replaying it.
"""

from typing import Dict, Optional, Tuple

# Wire protocol
PREFIX = 'EPISODES'
SEPARATOR = ':'

# Largest magnitude accepted for a time in ms. Differences of two such times
# stay exact in float64 and never overflow int64.
MAX_TIME_MS = 2**53 - 1

# Predefined marks and the episodes derived from them
START_TIME = 'starttime'
FIRST_BYTE = 'firstbyte'
ON_LOAD = 'onload'
DONE = 'done'

BACK_END = 'backend'
FRONT_END = 'frontend'
PAGE_LOAD_TIME = 'pageloadtime'
TOTAL_TIME = 'totaltime'

# Single marks taken from navigation timing
DOM_COMPLETE = '_domComplete'
DOM_INTERACTIVE = '_domInteractive'
DOM_LOADING = '_domLoading'
FETCH_START = '_fetchStart'
NAVIGATION_START = '_navigationStart'
SECURE_CONNECTION_START = '_secureConnectionStart'

# Paired navigation timing phases: each yields <name>Start, <name>End and
# an episode <name>
CONNECT = '_connect'
DOMAIN_LOOKUP = '_domainLookup'
DOM_CONTENT_LOADED_EVENT = '_domContentLoadedEvent'
LOAD_EVENT = '_loadEvent'
REDIRECT = '_redirect'
REQUEST = '_request'
RESPONSE = '_response'
UNLOAD_EVENT = '_unloadEvent'

START_SUFFIX = 'Start'
END_SUFFIX = 'End'

# mark name -> ((episode, start mark, end mark or None for "now"), ...)
DERIVED_EPISODES: Dict[str, Tuple[Tuple[str, str, Optional[str]], ...]] = {
    FIRST_BYTE: ((BACK_END, START_TIME, FIRST_BYTE),),
    ON_LOAD: (
        (FRONT_END, FIRST_BYTE, ON_LOAD),
        (PAGE_LOAD_TIME, START_TIME, ON_LOAD),
    ),
    DONE: ((TOTAL_TIME, START_TIME, None),),
}

# Version reported by the default beacon formatter
BEACON_VERSION = '0.2'
BOOMERANG_VERSION = 1

# Episodes name -> Boomerang parameter name
BOOMERANG_REMAP: Dict[str, str] = {
    NAVIGATION_START: 'nt_nav_st',
    REDIRECT + START_SUFFIX: 'nt_red_st',
    REDIRECT + END_SUFFIX: 'nt_red_end',
    FETCH_START: 'nt_fet_st',
    DOMAIN_LOOKUP + START_SUFFIX: 'nt_dns_st',
    DOMAIN_LOOKUP + END_SUFFIX: 'nt_dns_end',
    CONNECT + START_SUFFIX: 'nt_con_st',
    CONNECT + END_SUFFIX: 'nt_con_end',
    REQUEST + START_SUFFIX: 'nt_req_st',
    RESPONSE + START_SUFFIX: 'nt_res_st',
    RESPONSE + END_SUFFIX: 'nt_res_end',
    DOM_LOADING: 'nt_domloading',
    DOM_INTERACTIVE: 'nt_domint',
    DOM_CONTENT_LOADED_EVENT + START_SUFFIX: 'nt_domcontloaded_st',
    DOM_CONTENT_LOADED_EVENT + END_SUFFIX: 'nt_comcontloaded_end',
    DOM_COMPLETE: 'nt_domcomp',
    LOAD_EVENT + START_SUFFIX: 'nt_load_st',
    LOAD_EVENT + END_SUFFIX: 'nt_load_end',
    UNLOAD_EVENT + START_SUFFIX: 'nt_unload_st',
    UNLOAD_EVENT + END_SUFFIX: 'nt_unload_end',
}
