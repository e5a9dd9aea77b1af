"""Terminal reader for archived Phrack issues."""

__version__ = "1.0.0"
