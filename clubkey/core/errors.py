"""Errors raised by the key coordinator.

Invalid key transitions are not errors: they resolve to "no change" and are
reported through ``OperationResult.changed``.
"""


class KeyBotError(Exception):
    """Base class for user-facing rejections."""


class NoActiveSession(KeyBotError):
    """The operation needs a current holder, but the key is not borrowed."""

    def __init__(self, message: str = "The key is not currently borrowed."):
        super().__init__(message)


class InvalidSetting(KeyBotError):
    """A configuration value is outside its allowed range."""
