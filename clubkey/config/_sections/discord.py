"""Discord configuration models."""

from pydantic import BaseModel


class DiscordSettings(BaseModel):
    bot_token: str = ""
    log_channel_id: int = 0  # Channel that receives the startup operation panel
    guild_ids: str = ""  # Comma separated; empty syncs commands globally

    @property
    def guild_id_list(self) -> list[int]:
        return [int(g.strip()) for g in self.guild_ids.split(",") if g.strip()]
