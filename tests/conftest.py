from __future__ import annotations

import types
from unittest.mock import AsyncMock, MagicMock

import pytest

from gatebot.config import EnvironmentConfig
from gatebot.interactions import VerificationFlow
from gatebot.scheduler import DeferredTaskScheduler
from gatebot.verification_api import VerificationOutcome

REQUIRED_ROLE_ID = 555
BOT_USER_ID = 999
GUILD_ID = 1234


class FakeMember:
    """Guild member double whose role set behaves like Discord's."""

    def __init__(self, member_id: int = 42, name: str = "alice", role_ids=()):
        self.id = member_id
        self.name = name
        self.roles = [types.SimpleNamespace(id=role_id) for role_id in role_ids]
        self.add_roles = AsyncMock(side_effect=self._add_roles)

    async def _add_roles(self, *roles, reason=None):
        for role in roles:
            if all(existing.id != role.id for existing in self.roles):
                self.roles.append(types.SimpleNamespace(id=role.id))

    def __str__(self) -> str:
        return self.name


class FakeMessage:
    def __init__(self, message_id: int, author_id: int, mention_ids=()):
        self.id = message_id
        self.author = types.SimpleNamespace(id=author_id)
        self.mentions = [types.SimpleNamespace(id=user_id) for user_id in mention_ids]
        self.delete = AsyncMock()


class FakeChannel:
    """Text channel double with an async ``history`` iterator."""

    def __init__(self, channel_id: int = 777, messages=()):
        self.id = channel_id
        self.messages = list(messages)
        self.send = AsyncMock()
        self.history_limits: list[int] = []

    async def history(self, limit: int = 100):
        self.history_limits.append(limit)
        for message in self.messages[:limit]:
            yield message


def make_config(**overrides) -> EnvironmentConfig:
    values = dict(
        public_key="00" * 32,
        bot_token="token",
        application_id="4321",
        required_role_id=REQUIRED_ROLE_ID,
        verify_url="http://verifier.test/verify",
        reward_delay_seconds=0,
    )
    values.update(overrides)
    return EnvironmentConfig(**values)


def interaction_payload(
    *,
    kind: int = 3,
    name: str | None = None,
    custom_id: str | None = "verify_button",
    user_id: str = "42",
    username: str = "alice",
    guild_id: str | None = str(GUILD_ID),
    token: str | None = "interaction-token",
) -> dict:
    data = {}
    if name is not None:
        data["name"] = name
    if custom_id is not None:
        data["custom_id"] = custom_id
    payload = {
        "type": kind,
        "data": data,
        "member": {"user": {"id": user_id, "username": username}},
        "token": token,
    }
    if guild_id is not None:
        payload["guild_id"] = guild_id
    return payload


@pytest.fixture
def member() -> FakeMember:
    return FakeMember()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def guild(member: FakeMember, channel: FakeChannel) -> MagicMock:
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.system_channel = channel
    guild.get_member.side_effect = lambda user_id: (
        member if user_id == member.id else None
    )
    guild.fetch_member = AsyncMock()
    return guild


@pytest.fixture
def bot(guild: MagicMock) -> MagicMock:
    bot = MagicMock()
    bot.user = types.SimpleNamespace(id=BOT_USER_ID)
    bot.get_guild.side_effect = lambda guild_id: guild if guild_id == GUILD_ID else None
    bot.fetch_channel = AsyncMock()
    return bot


@pytest.fixture
def verifier() -> AsyncMock:
    verifier = AsyncMock()
    verifier.verify.return_value = VerificationOutcome(success=True, status=200)
    return verifier


@pytest.fixture
def webhook() -> AsyncMock:
    webhook = AsyncMock()
    webhook.edit_original.return_value = True
    return webhook


@pytest.fixture
def make_flow(bot, verifier, webhook):
    def factory(**overrides) -> VerificationFlow:
        return VerificationFlow(
            bot=bot,
            verifier=verifier,
            scheduler=DeferredTaskScheduler(),
            config=make_config(**overrides),
            webhook=webhook,
        )

    return factory
