"""
Reference store: actions, reducer, in-memory store and JSON persistence.
"""
