"""Relay between one robot and any number of operator consoles."""

__version__ = "1.0.0"
