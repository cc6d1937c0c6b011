# petsynth/utils/__init__.py
"""
Utility package

Helpers shared across the whole project.
"""

from .datetime_utils import DateTimeUtils, now_ms

__all__ = ['DateTimeUtils', 'now_ms']
