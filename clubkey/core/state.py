"""Key custody state machine.

Four states, four operations. Every operation is a total function on the
state: a request that does not apply returns the state unchanged, so a stray
button press is simply ignored.

    RETURNED --borrow--> BORROWED --open--> OPENED --close--> CLOSED
        ^                    |                                   |
        +------return--------+---------------return--------------+

``open`` and ``close`` are unavailable in restricted (console) mode. There is
no way from OPENED straight to RETURNED: the room has to be closed first.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable


class KeyState(str, Enum):
    """Where the key currently is."""

    RETURNED = "RETURN"
    BORROWED = "BORROW"
    OPENED = "OPEN"
    CLOSED = "CLOSE"


class KeyOperation(str, Enum):
    """Operations a member can request. Values double as button custom ids."""

    BORROW = "BORROW"
    OPEN = "OPEN"
    CLOSE = "CLOSE"
    RETURN = "RETURN"


# Past-tense label shown after an operation lands in each state
STATE_LABELS: dict[KeyState, str] = {
    KeyState.RETURNED: "Returned",
    KeyState.BORROWED: "Borrowed",
    KeyState.OPENED: "Opened",
    KeyState.CLOSED: "Closed",
}


def borrow(state: KeyState, restricted_mode: bool = False) -> KeyState:
    return KeyState.BORROWED if state == KeyState.RETURNED else state


def open_room(state: KeyState, restricted_mode: bool = False) -> KeyState:
    if state in (KeyState.BORROWED, KeyState.CLOSED) and not restricted_mode:
        return KeyState.OPENED
    return state


def close_room(state: KeyState, restricted_mode: bool = False) -> KeyState:
    if state == KeyState.OPENED and not restricted_mode:
        return KeyState.CLOSED
    return state


def return_key(state: KeyState, restricted_mode: bool = False) -> KeyState:
    if state in (KeyState.BORROWED, KeyState.CLOSED):
        return KeyState.RETURNED
    return state


TRANSITIONS: dict[KeyOperation, Callable[[KeyState, bool], KeyState]] = {
    KeyOperation.BORROW: borrow,
    KeyOperation.OPEN: open_room,
    KeyOperation.CLOSE: close_room,
    KeyOperation.RETURN: return_key,
}


def apply(state: KeyState, operation: KeyOperation, restricted_mode: bool = False) -> KeyState:
    """Return the state that results from requesting ``operation`` in ``state``."""
    return TRANSITIONS[operation](state, restricted_mode)


def available_operations(state: KeyState, restricted_mode: bool = False) -> tuple[KeyOperation, ...]:
    """Operations offered as buttons while the key is in ``state``.

    Order is display order.
    """
    if state == KeyState.RETURNED:
        return (KeyOperation.BORROW,)
    if state == KeyState.BORROWED:
        if restricted_mode:
            return (KeyOperation.RETURN,)
        return (KeyOperation.OPEN, KeyOperation.RETURN)
    if state == KeyState.OPENED:
        return (KeyOperation.CLOSE,)
    return (KeyOperation.RETURN, KeyOperation.OPEN)
