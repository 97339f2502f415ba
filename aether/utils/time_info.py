"""
TIME INFORMATION UTILITY
========================

Returns a one-line description of the current date and time. The chat prompt
includes it so the model can answer "what day is it?" without guessing.
"""

import datetime
from typing import Optional


def get_time_information(now: Optional[datetime.datetime] = None) -> str:
    """Return e.g. 'Monday, 05 February 2026, 14:03 (local time)'."""
    now = now or datetime.datetime.now()
    return f"{now.strftime('%A, %d %B %Y, %H:%M')} (local time)"
