"""Gate bot runtime: wires the Discord client, HTTP server and verification flow."""

from __future__ import annotations

import asyncio
import logging
import os
import signal

import aiohttp
import discord
from aiohttp import web

from .config import EnvironmentConfig
from .greeter import JoinGreeter
from .interactions import VerificationFlow
from .scheduler import DeferredTaskScheduler
from .security import SignatureVerifier
from .verification_api import VerificationClient
from .web import create_app
from .webhooks import InteractionWebhook

log = logging.getLogger("gatebot")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
SHUTDOWN_GRACE_SECONDS = 5


class BotRuntime:
    """Owns every long-lived handle.

    Lifecycle: ``start()`` opens the HTTP session and web server, ``run()``
    then logs the Discord client in and blocks until the client disconnects
    or a stop signal arrives, and ``close()`` tears everything down in reverse.
    """

    def __init__(self, config: EnvironmentConfig) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True

        self.config = config
        self.bot = discord.Client(intents=intents)
        self.scheduler = DeferredTaskScheduler()
        self.signature_verifier = SignatureVerifier(config.public_key)
        self.greeter = JoinGreeter(self.bot, config.verification_channel_id)
        self.session: aiohttp.ClientSession | None = None
        self.flow: VerificationFlow | None = None
        self.runner: web.AppRunner | None = None
        self._register_events()

    def _register_events(self) -> None:
        @self.bot.event
        async def on_ready() -> None:
            log.info("Bot ready as %s (%s)", self.bot.user, self.bot.user.id)

        @self.bot.event
        async def on_member_join(member: discord.Member) -> None:
            await self.greeter.on_member_join(member)

    def build_flow(self, session: aiohttp.ClientSession) -> VerificationFlow:
        return VerificationFlow(
            bot=self.bot,
            verifier=VerificationClient(session, self.config.verify_url),
            scheduler=self.scheduler,
            config=self.config,
            webhook=InteractionWebhook(
                session, self.config.api_base, self.config.application_id
            ),
        )

    async def start(self) -> None:
        self.session = aiohttp.ClientSession()
        self.flow = self.build_flow(self.session)
        app = create_app(
            self.flow,
            self.signature_verifier,
            serve_verify_stub=self.config.serve_verify_stub,
        )
        self.runner = web.AppRunner(app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.config.host, self.config.port)
        await site.start()
        log.info("Listening on %s:%s", self.config.host, self.config.port)

    async def run(self) -> None:
        await self.start()
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        handled: list[signal.Signals] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except (NotImplementedError, RuntimeError):  # pragma: no cover
                continue
            handled.append(sig)

        client_task = asyncio.create_task(self.bot.start(self.config.bot_token))
        stop_task = asyncio.create_task(stop.wait())
        try:
            done, _ = await asyncio.wait(
                {client_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if client_task in done:
                # Surface login failures and unexpected disconnects.
                client_task.result()
            else:
                log.info("Stop signal received, shutting down")
        finally:
            for sig in handled:
                loop.remove_signal_handler(sig)
            stop_task.cancel()
            await self.close()
            if not client_task.done():
                client_task.cancel()
                await asyncio.gather(client_task, return_exceptions=True)

    async def close(self) -> None:
        # Stop accepting interactions before draining the work they schedule.
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
        await self.scheduler.shutdown(grace=SHUTDOWN_GRACE_SECONDS)
        if not self.bot.is_closed():
            await self.bot.close()
        if self.session is not None:
            await self.session.close()
            self.session = None

    @classmethod
    def create(cls) -> "BotRuntime":
        config = EnvironmentConfig.load()
        return cls(config)


async def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format=LOG_FORMAT,
    )
    runtime = BotRuntime.create()
    await runtime.run()


def cli() -> None:
    asyncio.run(main())


__all__ = ["BotRuntime", "cli", "main"]
