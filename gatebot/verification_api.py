from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

import aiohttp

log: Final = logging.getLogger("gatebot")


@dataclass(slots=True)
class VerificationOutcome:
    """Result of a single call to the verification service."""

    success: bool
    status: int | None = None


class VerificationClient:
    """Thin adapter around the external ``/verify`` endpoint.

    Network and decoding errors propagate to the caller; only a well-formed
    reply is turned into an outcome.
    """

    def __init__(self, session: aiohttp.ClientSession, verify_url: str) -> None:
        self._session = session
        self._verify_url = verify_url

    @property
    def verify_url(self) -> str:
        return self._verify_url

    async def verify(self, discord_id: str, username: str) -> VerificationOutcome:
        payload = {"discordId": discord_id, "username": username}
        async with self._session.post(self._verify_url, json=payload) as resp:
            resp.raise_for_status()
            data = await resp.json(content_type=None)

        success = isinstance(data, dict) and data.get("success") is True
        log.info(
            "Verification service answered %s for %s (%s)",
            "success" if success else "failure",
            username,
            discord_id,
        )
        return VerificationOutcome(success=success, status=resp.status)
