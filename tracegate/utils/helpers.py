"""Helper functions for ids, timestamps and URLs."""

from __future__ import annotations

import re


def format_trace_id(trace_id: int) -> str:
    """
    Format an integer trace id as a hex string.

    Args:
        trace_id: trace id as a 128-bit integer

    Returns:
        32-character hex string
    """
    return format(trace_id, '032x')


def format_span_id(span_id: int) -> str:
    """
    Format an integer span id as a hex string.

    Args:
        span_id: span id as a 64-bit integer

    Returns:
        16-character hex string
    """
    return format(span_id, '016x')


def parse_trace_id(hex_string: str) -> int:
    """
    Parse a hex string trace id to an integer.

    Args:
        hex_string: 32-character hex string

    Returns:
        trace id as an integer (0 when empty)
    """
    if not hex_string:
        return 0
    return int(hex_string, 16)


def parse_span_id(hex_string: str) -> int:
    """
    Parse a hex string span id to an integer.

    Args:
        hex_string: 16-character hex string

    Returns:
        span id as an integer (0 when empty)
    """
    if not hex_string:
        return 0
    return int(hex_string, 16)


def ms_to_sec(time_ms: float) -> float:
    """Convert milliseconds to seconds."""
    return time_ms / 1000


def sec_to_ms(time_sec: float) -> float:
    """Convert seconds to milliseconds."""
    return time_sec * 1000


_QUERY_OR_FRAGMENT = re.compile(r"[?#].*$", re.DOTALL)


def strip_url_query_and_fragment(url: str) -> str:
    """Strip the query string and fragment off a URL, for use as a transaction name."""
    return _QUERY_OR_FRAGMENT.sub("", url)
