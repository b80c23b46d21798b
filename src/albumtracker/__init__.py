"""Identify records from photographs and add them to a Discogs collection."""

__version__ = "0.1.0"
