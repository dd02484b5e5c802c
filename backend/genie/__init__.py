"""Project Genie - chat threads with an optimistic, cache-backed thread list."""

__version__ = "0.1.0"
