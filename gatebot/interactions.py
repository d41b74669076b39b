"""Interaction handling for the verify command and verify button.

Each inbound interaction runs through a short state machine::

    Received -> Classified -> ShortCircuited | Verifying -> Granted | Failed -> Responded

and produces exactly one :class:`InteractionResponse`. In deferred mode the
response is an acknowledgement and the verifying step finishes in the
background, editing the original message once it is done.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Final

import discord

from . import actions
from .channels import resolve_target_channel
from .components import (
    ALREADY_VERIFIED_MESSAGE,
    EPHEMERAL_FLAG,
    VERIFICATION_ERROR_MESSAGE,
    VERIFICATION_FAILED_MESSAGE,
    VERIFIED_MESSAGE,
    VERIFY_BUTTON_ID,
    VERIFY_COMMAND_NAME,
    ResponseType,
    acquire_components,
    message_data,
)
from .config import EnvironmentConfig
from .scheduler import DeferredTaskScheduler, ScheduledTask
from .verification_api import VerificationClient
from .webhooks import InteractionWebhook

log: Final = logging.getLogger("gatebot")


class InteractionKind(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3


class FlowOutcome(str, Enum):
    """Terminal state reached by a single interaction."""

    PONG = "pong"
    ALREADY_VERIFIED = "already_verified"
    GRANTED = "granted"
    FAILED = "failed"
    ERRORED = "errored"
    DEFERRED = "deferred"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class InteractionEvent:
    type: int | None
    name: str | None = None
    custom_id: str | None = None
    user_id: str | None = None
    username: str | None = None
    guild_id: str | None = None
    token: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "InteractionEvent":
        data = payload.get("data") or {}
        member = payload.get("member") or {}
        user = member.get("user") or payload.get("user") or {}
        user_id = user.get("id")
        return cls(
            type=payload.get("type"),
            name=data.get("name"),
            custom_id=data.get("custom_id"),
            user_id=str(user_id) if user_id is not None else None,
            username=user.get("username"),
            guild_id=payload.get("guild_id"),
            token=payload.get("token"),
        )

    @property
    def kind(self) -> InteractionKind | None:
        try:
            return InteractionKind(self.type)
        except ValueError:
            return None

    @property
    def action_name(self) -> str | None:
        if self.kind is InteractionKind.MESSAGE_COMPONENT:
            return self.custom_id
        return self.name

    @property
    def is_verify_action(self) -> bool:
        return self.name == VERIFY_COMMAND_NAME or self.custom_id == VERIFY_BUTTON_ID


@dataclass(slots=True)
class InteractionResponse:
    body: dict[str, Any]
    outcome: FlowOutcome
    status: int = 200
    background: ScheduledTask | None = field(default=None, compare=False)


def _snowflake(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def error_response(message: str, *, status: int = 400) -> InteractionResponse:
    return InteractionResponse(
        body={"error": message}, outcome=FlowOutcome.REJECTED, status=status
    )


class VerificationFlow:
    """Drives one verification cycle per interaction.

    All collaborators are injected; the flow holds no per-user state between
    interactions. Whether a user is verified is always read from their roles.
    """

    def __init__(
        self,
        bot: discord.Client,
        verifier: VerificationClient,
        scheduler: DeferredTaskScheduler,
        config: EnvironmentConfig,
        webhook: InteractionWebhook | None = None,
    ) -> None:
        self.bot = bot
        self.verifier = verifier
        self.scheduler = scheduler
        self.config = config
        self.webhook = webhook

    async def handle(self, event: InteractionEvent) -> InteractionResponse:
        kind = event.kind
        if kind is InteractionKind.PING:
            return InteractionResponse(
                body={"type": ResponseType.PONG}, outcome=FlowOutcome.PONG
            )

        if kind is None:
            log.error("Unknown interaction type %s", event.type)
            return error_response("Unknown interaction type")

        if not event.is_verify_action:
            log.error("Unknown command or button interaction: %s", event.action_name)
            return error_response("Unknown command or interaction")

        guild_id = _snowflake(event.guild_id)
        guild = self.bot.get_guild(guild_id) if guild_id is not None else None
        if guild is None:
            log.warning("Guild %s not found for interaction", event.guild_id)
            return error_response("Guild not found.")

        user_id = _snowflake(event.user_id)
        if user_id is None:
            return error_response("Member not found.")

        try:
            member = await self._resolve_member(guild, user_id)
        except discord.HTTPException as exc:
            log.exception("Failed to fetch member %s: %s", event.user_id, exc)
            return self._reply(
                event,
                message_data(VERIFICATION_ERROR_MESSAGE, components=[]),
                FlowOutcome.ERRORED,
            )
        if member is None:
            log.warning("Member %s not found in guild %s", event.user_id, guild.id)
            return error_response("Member not found.")

        if actions.has_role(member, self.config.required_role_id):
            log.info("%s already verified.", member)
            return InteractionResponse(
                body={
                    "type": ResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
                    "data": message_data(ALREADY_VERIFIED_MESSAGE),
                },
                outcome=FlowOutcome.ALREADY_VERIFIED,
            )

        log.info("Verifying user %s (%s)", event.username, event.user_id)

        deferred = self.config.deferred_responses and self.webhook is not None
        if deferred and not event.token:
            log.warning("Interaction for %s has no token, replying immediately", member)
        elif deferred:
            handle = self.scheduler.schedule(
                0,
                lambda: self._finish_deferred(event, guild, member),
                name=f"verify-{event.user_id}",
            )
            return InteractionResponse(
                body={
                    "type": ResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
                    "data": {"flags": EPHEMERAL_FLAG},
                },
                outcome=FlowOutcome.DEFERRED,
                background=handle,
            )

        data, outcome = await self.verify_member(event, guild, member)
        return self._reply(event, data, outcome)

    async def verify_member(
        self,
        event: InteractionEvent,
        guild: discord.Guild,
        member: discord.Member,
    ) -> tuple[dict[str, Any], FlowOutcome]:
        """Run the verifying step and return the response data and outcome."""
        try:
            result = await self.verifier.verify(
                event.user_id or str(member.id), event.username or member.name
            )
            if not result.success:
                log.info("Verification rejected for %s", member)
                components = acquire_components(
                    self.config.acquire_label, self.config.acquire_url
                )
                return (
                    message_data(VERIFICATION_FAILED_MESSAGE, components=components),
                    FlowOutcome.FAILED,
                )

            await actions.grant_role(member, self.config.required_role_id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Error during verification process for %s: %s", member, exc)
            return (
                message_data(VERIFICATION_ERROR_MESSAGE, components=[]),
                FlowOutcome.ERRORED,
            )

        if self.config.cleanup_bot_messages:
            await self._cleanup(guild, member.id)
        self.schedule_reward(guild, member.id)
        return (
            message_data(VERIFIED_MESSAGE, components=[], clear_embeds=True),
            FlowOutcome.GRANTED,
        )

    def schedule_reward(self, guild: discord.Guild, user_id: int) -> ScheduledTask:
        return self.scheduler.schedule(
            self.config.reward_delay_seconds,
            lambda: self._post_reward(guild, user_id),
            name=f"reward-{user_id}",
        )

    async def _post_reward(self, guild: discord.Guild, user_id: int) -> None:
        channel = await resolve_target_channel(
            self.bot, self.config.verification_channel_id, guild
        )
        if channel is None:
            log.error("Channel for reward post not found.")
            return
        await actions.send_reward_post(channel, user_id, self.config.claim_url)

    async def _cleanup(self, guild: discord.Guild, user_id: int) -> None:
        """Best effort; never changes the outcome of the verification."""
        if self.bot.user is None:
            log.warning("Skipping message cleanup: bot user not available yet")
            return
        try:
            channel = await resolve_target_channel(
                self.bot, self.config.verification_channel_id, guild
            )
            if channel is None:
                log.error("Channel not found for deleting messages.")
                return
            await actions.delete_bot_mentions(channel, self.bot.user.id, user_id)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Message cleanup for %s failed: %s", user_id, exc)

    async def _finish_deferred(
        self,
        event: InteractionEvent,
        guild: discord.Guild,
        member: discord.Member,
    ) -> None:
        data, outcome = await self.verify_member(event, guild, member)
        if await self.webhook.edit_original(event.token, data):
            log.info("Deferred verification for %s finished: %s", member, outcome.value)

    async def _resolve_member(
        self, guild: discord.Guild, user_id: int
    ) -> discord.Member | None:
        member = guild.get_member(user_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(user_id)
        except discord.NotFound:
            return None

    def _reply(
        self,
        event: InteractionEvent,
        data: dict[str, Any],
        outcome: FlowOutcome,
    ) -> InteractionResponse:
        if event.kind is InteractionKind.MESSAGE_COMPONENT:
            response_type = ResponseType.UPDATE_MESSAGE
        else:
            response_type = ResponseType.CHANNEL_MESSAGE_WITH_SOURCE
        return InteractionResponse(
            body={"type": response_type, "data": data}, outcome=outcome
        )
