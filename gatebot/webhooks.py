from __future__ import annotations

import logging
from typing import Any, Final

import aiohttp

log: Final = logging.getLogger("gatebot")


class InteractionWebhook:
    """Edits the original response of a deferred interaction."""

    def __init__(
        self, session: aiohttp.ClientSession, api_base: str, application_id: str
    ) -> None:
        self._session = session
        self._api_base = api_base.rstrip("/")
        self._application_id = application_id

    def original_message_url(self, token: str) -> str:
        return (
            f"{self._api_base}/webhooks/{self._application_id}/{token}"
            "/messages/@original"
        )

    async def edit_original(self, token: str, data: dict[str, Any]) -> bool:
        """PATCH the original response; failures are logged and reported as False."""
        payload = {key: value for key, value in data.items() if key != "flags"}
        try:
            async with self._session.patch(
                self.original_message_url(token), json=payload
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    log.error(
                        "Editing deferred response failed with %s: %s",
                        resp.status,
                        body,
                    )
                    return False
        except (aiohttp.ClientError, RuntimeError) as exc:
            log.exception("Editing deferred response failed: %s", exc)
            return False
        return True
