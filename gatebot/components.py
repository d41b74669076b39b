"""Message, embed and interaction-response builders."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

import discord

VERIFY_COMMAND_NAME = "verify"
VERIFY_BUTTON_ID = "verify_button"

EPHEMERAL_FLAG = 64

GREETING_IMAGE_URL = (
    "https://pbs.twimg.com/profile_images/1086793002104827904/UXjpiDIl_400x400.jpg"
)
REWARD_IMAGE_URL = (
    "https://shop.ogs.gg/cdn/shop/files/frontcap.png?v=1706630562&width=1400"
)

ALREADY_VERIFIED_MESSAGE = "You already have access to the restricted channel."
VERIFIED_MESSAGE = (
    "✅ You have been verified! You now have access to the restricted channel."
)
VERIFICATION_FAILED_MESSAGE = (
    "Verification failed. Please check the instructions and try again.\n"
    "Go Get your AirDao Tokens"
)
VERIFICATION_ERROR_MESSAGE = (
    "An error occurred during the verification process. Please try again later."
)


class ResponseType(IntEnum):
    """Interaction callback types used by this bot."""

    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    UPDATE_MESSAGE = 7


def message_data(
    content: str,
    *,
    components: list[dict[str, Any]] | None = None,
    clear_embeds: bool = False,
    ephemeral: bool = True,
) -> dict[str, Any]:
    """Build the ``data`` part of an interaction response or webhook edit."""
    data: dict[str, Any] = {"content": content}
    if clear_embeds:
        data["embeds"] = []
    if components is not None:
        data["components"] = components
    if ephemeral:
        data["flags"] = EPHEMERAL_FLAG
    return data


def link_view(label: str, url: str) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(label=label, style=discord.ButtonStyle.link, url=url)
    )
    return view


def verify_view() -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(
            label="Verify Yourself",
            style=discord.ButtonStyle.primary,
            custom_id=VERIFY_BUTTON_ID,
        )
    )
    return view


def acquire_components(label: str, url: str) -> list[dict[str, Any]]:
    """Action row holding the single external link shown after a failed check."""
    return link_view(label, url).to_components()


def greeting_embed() -> discord.Embed:
    embed = discord.Embed(
        title="Restricted Access Verification",
        description=(
            "Click the button below to verify yourself and gain access to the "
            "restricted channel."
        ),
        color=discord.Color(0x0099FF),
    )
    embed.set_image(url=GREETING_IMAGE_URL)
    embed.set_footer(text="Verification Required")
    return embed


def reward_embed() -> discord.Embed:
    embed = discord.Embed(
        title="Claim Your Reward",
        description="Click the button below to claim your reward.",
        color=discord.Color(0x00FF00),
    )
    embed.set_image(url=REWARD_IMAGE_URL)
    embed.set_footer(text="Rewards Await!")
    return embed


def user_mention(user_id: int | str) -> str:
    return f"<@{user_id}>"
