"""Error taxonomy shared by the store, the channel and the view layer.

A missing record is never an exception: lookups return ``None`` and the
caller decides what "not found" means.
"""


class TrackerError(Exception):
    """Base class for failures raised by the sync engine."""


class StoreError(TrackerError):
    """The store rejected a query or command. Not retried."""


class TransientError(TrackerError):
    """Transport failure between the view and the store (simulated or real)."""
