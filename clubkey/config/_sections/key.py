"""Key custody configuration models."""

from pydantic import BaseModel


class KeySettings(BaseModel):
    # Console mode: the room is operated from a desk, so only borrow/return apply
    restricted_mode: bool = False
