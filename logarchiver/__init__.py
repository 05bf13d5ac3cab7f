"""Monthly log archiving with verify-before-delete."""

__version__ = "1.0.0"
