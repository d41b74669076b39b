"""Side effects performed by the verification flow."""

from __future__ import annotations

import logging
from typing import Final

import discord

from .components import link_view, reward_embed, user_mention

log: Final = logging.getLogger("gatebot")

CLEANUP_HISTORY_LIMIT: Final[int] = 100


def has_role(member: discord.Member, role_id: int) -> bool:
    return any(role.id == role_id for role in member.roles)


async def grant_role(member: discord.Member, role_id: int) -> bool:
    """Ensure ``member`` holds ``role_id``; return True if the role was added.

    Discord errors propagate to the caller.
    """
    if has_role(member, role_id):
        log.debug("%s already holds role %s", member, role_id)
        return False

    await member.add_roles(discord.Object(id=role_id), reason="Passed verification")
    log.info("Granted role %s to %s", role_id, member)
    return True


async def delete_bot_mentions(
    channel: discord.TextChannel,
    bot_user_id: int,
    user_id: int,
    *,
    limit: int = CLEANUP_HISTORY_LIMIT,
) -> int:
    """Delete recent bot-authored messages in ``channel`` that mention ``user_id``.

    Best effort: a failed deletion is logged and the rest are still attempted.
    """
    try:
        stale = [
            message
            async for message in channel.history(limit=limit)
            if message.author.id == bot_user_id
            and any(user.id == user_id for user in message.mentions)
        ]
    except discord.Forbidden:
        log.warning("No permission to read history in channel %s", channel.id)
        return 0
    except discord.HTTPException as exc:
        log.exception("Failed to fetch history in channel %s: %s", channel.id, exc)
        return 0
    except Exception as exc:  # pylint: disable=broad-except
        log.exception("Unexpected error reading channel %s: %s", channel.id, exc)
        return 0

    deleted = 0
    for message in stale:
        try:
            await message.delete()
        except discord.NotFound:
            log.debug("Message %s already deleted", message.id)
            continue
        except discord.Forbidden:
            log.warning("No permission to delete message %s", message.id)
            continue
        except discord.HTTPException as exc:
            log.exception("Failed to delete message %s: %s", message.id, exc)
            continue
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Unexpected error deleting message %s: %s", message.id, exc)
            continue
        deleted += 1
        log.info("Deleted message %s mentioning user %s", message.id, user_id)
    return deleted


async def send_reward_post(
    channel: discord.abc.Messageable, user_id: int, claim_url: str
) -> discord.Message | None:
    try:
        message = await channel.send(
            content=user_mention(user_id),
            embed=reward_embed(),
            view=link_view("Claim Now", claim_url),
        )
    except discord.Forbidden:
        log.warning("No send permission for reward post to %s", user_id)
        return None
    except discord.HTTPException as exc:
        log.exception("Error sending reward post to %s: %s", user_id, exc)
        return None

    log.info("Reward post sent to %s", user_id)
    return message
