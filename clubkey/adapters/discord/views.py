"""Key operation buttons.

Every message the bot sends carries the buttons for the current key state.
Button custom ids are the ``KeyOperation`` values and the views never time
out, so a view registered with ``Bot.add_view`` at startup keeps the buttons
on older messages working after a restart.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Iterable

import discord

from clubkey.config.logging import get_logger
from clubkey.core.state import KeyOperation

logger = get_logger("bot.views")

ButtonHandler = Callable[[KeyOperation, discord.Interaction], Awaitable[None]]

BUTTON_LABELS: dict[KeyOperation, str] = {
    KeyOperation.BORROW: "Borrow",
    KeyOperation.OPEN: "Open",
    KeyOperation.CLOSE: "Close",
    KeyOperation.RETURN: "Return",
}

BUTTON_STYLES: dict[KeyOperation, discord.ButtonStyle] = {
    KeyOperation.BORROW: discord.ButtonStyle.success,
    KeyOperation.OPEN: discord.ButtonStyle.success,
    KeyOperation.CLOSE: discord.ButtonStyle.danger,
    KeyOperation.RETURN: discord.ButtonStyle.danger,
}


class KeyOperationView(discord.ui.View):
    """A row of key operation buttons."""

    def __init__(self, handler: ButtonHandler, operations: Iterable[KeyOperation]):
        """Initialize the view.

        Args:
            handler: Coroutine called with the operation and interaction on click
            operations: Buttons to show, in display order
        """
        super().__init__(timeout=None)
        self.handler = handler
        for operation in operations:
            self.add_item(KeyButton(operation))

    @property
    def operations(self) -> list[KeyOperation]:
        return [item.operation for item in self.children if isinstance(item, KeyButton)]


class KeyButton(discord.ui.Button):
    """Button for a single key operation."""

    def __init__(self, operation: KeyOperation):
        super().__init__(
            label=BUTTON_LABELS[operation],
            style=BUTTON_STYLES[operation],
            custom_id=operation.value,
        )
        self.operation = operation

    async def callback(self, interaction: discord.Interaction) -> None:
        view = self.view
        if not isinstance(view, KeyOperationView):
            return

        try:
            await view.handler(self.operation, interaction)
        except Exception as e:
            logger.exception(f"Error handling {self.operation.value} button: {e}")
