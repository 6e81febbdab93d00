"""
worklens: live derived views over the active work context of a task tracker.
"""

__version__ = "0.1.0"
