"""Keep a mods directory in sync with a Steam Workshop collection."""

__version__ = "0.1.0"
