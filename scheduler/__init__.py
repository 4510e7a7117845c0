"""
Scheduler package hosting the change monitor.

This package contains:
- Interval scheduling of run cycles
- Exit status handling for failed runs
"""

__version__ = "1.0.0"
