"""cumon: Claude usage monitor."""

__version__ = "0.1.0"
