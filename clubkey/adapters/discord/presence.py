"""Bot presence per key state.

The bot's own status light tells the server at a glance where the key is:
invisible when returned, idle while someone holds it, online (playing "Club
room") while the room is open.
"""

from __future__ import annotations

from typing import Any

import discord

from clubkey.core.state import KeyState

PRESENCE: dict[KeyState, tuple[discord.Status, str | None]] = {
    KeyState.RETURNED: (discord.Status.invisible, None),
    KeyState.BORROWED: (discord.Status.idle, None),
    KeyState.OPENED: (discord.Status.online, "Club room"),
    KeyState.CLOSED: (discord.Status.idle, None),
}


def presence_for(state: KeyState) -> dict[str, Any]:
    """Keyword arguments for ``Bot.change_presence`` in ``state``."""
    status, activity_name = PRESENCE[state]
    return {
        "status": status,
        "activity": discord.Game(name=activity_name) if activity_name else None,
    }
