"""Key-value store adapters.

Redis in production, a dictionary-backed fake for tests and single-process
runs. Both implement the same abstract interface.
"""
