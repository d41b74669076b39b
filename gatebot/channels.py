from __future__ import annotations

import logging
from typing import Final

import discord

log: Final = logging.getLogger("gatebot")


async def resolve_target_channel(
    bot: discord.Client,
    channel_id: int | None,
    guild: discord.Guild,
) -> discord.TextChannel | None:
    """Return the channel used for greeting and reward posts, or None.

    With no configured id the guild's system channel is used. A configured id
    is looked up in the guild cache first, then fetched over REST.
    """
    if not channel_id:
        channel = guild.system_channel
        if channel is None:
            log.warning("Guild %s has no system channel configured", guild.id)
        return channel

    channel = guild.get_channel(channel_id)
    if isinstance(channel, discord.TextChannel):
        return channel

    try:
        channel = await bot.fetch_channel(channel_id)
    except discord.NotFound:
        log.warning("Channel %s not found", channel_id)
        return None
    except discord.Forbidden:
        log.warning("No access to channel %s – check bot permissions", channel_id)
        return None
    except discord.HTTPException as exc:
        log.warning("Cannot fetch channel %s – HTTP error: %s", channel_id, exc)
        return None

    if not isinstance(channel, discord.TextChannel):
        log.warning("Channel ID %s is not a text channel", channel_id)
        return None
    if channel.guild.id != guild.id:
        log.warning(
            "Channel %s belongs to different guild (%s) than expected (%s)",
            channel_id,
            channel.guild.id,
            guild.id,
        )
        return None
    return channel
