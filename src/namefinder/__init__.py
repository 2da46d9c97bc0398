"""NameFinder - locate files by wildcard pattern or by meaning."""

__version__ = "0.1.0"
