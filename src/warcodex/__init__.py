"""Content management service for tabletop wargame rule data."""

__version__ = "0.3.0"
