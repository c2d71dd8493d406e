"""A turn-based kingdom strategy game for two to four players at one terminal."""

__version__ = "0.1.0"