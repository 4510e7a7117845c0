"""
Ready-made monitor targets.
"""

from targets.json_feed import JsonFeedTarget

__all__ = ["JsonFeedTarget"]
