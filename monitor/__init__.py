"""
Change monitoring harness.

This package contains:
- Snapshot persistence
- Change notification formatting
- E-mail delivery
- Fatal error handling
- The run cycle orchestrator
"""

__version__ = "1.0.0"
