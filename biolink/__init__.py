"""Biolink - personal link-in-bio service with click analytics."""

__version__ = "0.1.0"
