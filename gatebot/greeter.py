from __future__ import annotations

import logging
from typing import Final

import discord

from .channels import resolve_target_channel
from .components import greeting_embed, user_mention, verify_view

log: Final = logging.getLogger("gatebot")


class JoinGreeter:
    """Posts the verify prompt when a member joins a guild."""

    def __init__(self, bot: discord.Client, channel_id: int | None) -> None:
        self.bot = bot
        self.channel_id = channel_id

    async def on_member_join(self, member: discord.Member) -> discord.Message | None:
        log.info("New member joined: %s", member)
        channel = await resolve_target_channel(self.bot, self.channel_id, member.guild)
        if channel is None:
            log.error("Verification channel not found for guild %s", member.guild.id)
            return None

        try:
            message = await channel.send(
                content=user_mention(member.id),
                embed=greeting_embed(),
                view=verify_view(),
            )
        except discord.Forbidden:
            log.warning("No send permission in verification channel %s", channel.id)
            return None
        except discord.HTTPException as exc:
            log.exception("Error sending verification message: %s", exc)
            return None

        log.info("Verification prompt sent to %s", member)
        return message
