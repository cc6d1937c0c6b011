# petsynth/utils/datetime_utils.py
"""
Centralized time helpers.

Every persisted timestamp in this project is an integer count of
milliseconds since the Unix epoch (UTC). API responses expose the same
integer, so clients never have to deal with timezone strings.
"""

import time


class DateTimeUtils:
    """Time helpers shared by models and services."""

    @staticmethod
    def now_ms() -> int:
        """Current time in epoch milliseconds."""
        return int(time.time() * 1000)


# Shortcuts
now_ms = DateTimeUtils.now_ms
