"""HTTP surface: interactions endpoint, verification stub and health check."""

from __future__ import annotations

import json
import logging
from typing import Awaitable, Callable, Final

from aiohttp import web

from .interactions import InteractionEvent, VerificationFlow
from .security import SIGNATURE_HEADER, TIMESTAMP_HEADER, SignatureVerifier

log: Final = logging.getLogger("gatebot")

INTERACTIONS_PATH: Final[str] = "/interactions"
VERIFY_PATH: Final[str] = "/verify"

FLOW_KEY: Final = web.AppKey("flow", VerificationFlow)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def signature_middleware(verifier: SignatureVerifier, protected: set[str]):
    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.path not in protected:
            return await handler(request)

        body = await request.read()
        if not verifier.verify(
            request.headers.get(SIGNATURE_HEADER),
            request.headers.get(TIMESTAMP_HEADER),
            body,
        ):
            log.warning(
                "Rejected interaction with bad signature from %s", request.remote
            )
            return web.json_response({"error": "Bad request signature"}, status=401)
        return await handler(request)

    return middleware


async def handle_interaction(request: web.Request) -> web.Response:
    try:
        payload = json.loads(await request.read())
    except ValueError:
        return web.json_response({"error": "Malformed interaction body"}, status=400)
    if not isinstance(payload, dict):
        return web.json_response({"error": "Malformed interaction body"}, status=400)

    flow = request.app[FLOW_KEY]
    response = await flow.handle(InteractionEvent.from_payload(payload))
    return web.json_response(response.body, status=response.status)


async def handle_verify(request: web.Request) -> web.Response:
    """Stand-in verification service that accepts everyone."""
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    log.info(
        "Verifying user with ID: %s, Username: %s",
        payload.get("discordId"),
        payload.get("username"),
    )
    return web.json_response({"success": True})


async def handle_health(_request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_app(
    flow: VerificationFlow,
    verifier: SignatureVerifier,
    *,
    serve_verify_stub: bool = True,
) -> web.Application:
    app = web.Application(
        middlewares=[signature_middleware(verifier, {INTERACTIONS_PATH})]
    )
    app[FLOW_KEY] = flow
    app.router.add_get("/", handle_health)
    app.router.add_post(INTERACTIONS_PATH, handle_interaction)
    if serve_verify_stub:
        app.router.add_post(VERIFY_PATH, handle_verify)
    return app
