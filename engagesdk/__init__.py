"""engagesdk - analytics event buffering and engagement client

This package records analytics events into a durable local queue, uploads them
in bulk to a Collect endpoint, and requests Engage decisions with an offline
fallback to the last good response. The HTTP layer sits behind a pluggable
transport interface so tests and demos can run without network access.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
