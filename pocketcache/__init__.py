"""pocketcache: a local, process-embedded Redis-style key/value cache."""

__version__ = "0.1.0"
