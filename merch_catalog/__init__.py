"""Merchandise catalogue browser: CSV normalization, querying and wishlist."""

__version__ = "1.0.0"
