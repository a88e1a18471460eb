"""Appointment time validation.

Times are plain ``HH:MM`` strings with no date component: every booking
is implicitly for today.  Only the hour is checked against the opening
window; minutes are accepted as long as the string has the right shape.
"""

from __future__ import annotations

import re

TIME_PATTERN = re.compile(r"^\d{1,2}:\d{2}$", re.ASCII)

DEFAULT_OPENING_HOUR = 8
DEFAULT_CLOSING_HOUR = 18


def is_well_formed(text: str) -> bool:
    """Return True if ``text`` looks like ``H:MM`` or ``HH:MM``."""
    # fullmatch: "$" alone would accept a trailing newline
    return bool(TIME_PATTERN.fullmatch(text))


def parse_hour(text: str) -> int:
    """Return the hour component of a well-formed time string."""
    hours, _ = text.split(":", 1)
    return int(hours)


def is_within_business_hours(
    text: str,
    opening_hour: int = DEFAULT_OPENING_HOUR,
    closing_hour: int = DEFAULT_CLOSING_HOUR,
) -> bool:
    """Check the hour against the half-open window ``[opening, closing)``.

    ``text`` must already be well formed; see :func:`is_well_formed`.
    """
    return opening_hour <= parse_hour(text) < closing_hour
