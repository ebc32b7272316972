"""State/store layer.

This package is the single writable home for fetched overlay data.  The
orchestrator decides when to fetch; the store only records what it is told
and notifies subscribers.
"""
