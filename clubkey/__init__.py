"""Club room key manager bot."""

__version__ = "0.1.0"
