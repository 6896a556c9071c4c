"""Discord client for the jukebox: wires the container, the music cog and shutdown."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_jukebox.domain.music.value_objects import SessionDestroyReason
from guild_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS: tuple[str, ...] = ("guild_jukebox.infrastructure.discord.cogs.music_cog",)

PRESENCE_NAME = "/play"


def build_intents() -> discord.Intents:
    """Gateway intents for voice playback and skip-vote listener counts."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.voice_states = True
    # Skip votes count the members sitting in the bot's voice channel
    intents.members = True
    return intents


class MusicBot(commands.Bot):
    def __init__(self, container: Container, settings: Settings, **kwargs) -> None:
        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=build_intents(),
            help_command=None,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        self._shutdown_event = asyncio.Event()
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)

        try:
            await self.container.initialize()
        except Exception as e:
            logger.exception(LogTemplates.BOT_CONTAINER_INIT_FAILED, e)
            raise
        logger.info(LogTemplates.BOT_CONTAINER_INITIALIZED)

        await self._load_cogs()
        self.tree.on_error = self._on_app_command_error

        if self.settings.discord.sync_on_startup:
            try:
                await self._sync_commands()
            except Exception as e:
                logger.warning(LogTemplates.BOT_SYNC_ON_STARTUP_FAILED, e)

        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def _load_cogs(self) -> int:
        """Load every cog in :data:`COGS`, returning how many failed."""
        failed = 0
        for cog in COGS:
            try:
                await self.load_extension(cog)
            except commands.ExtensionError as e:
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, cog, e)
                failed += 1
            else:
                logger.info(LogTemplates.BOT_COG_LOADED, cog)

        logger.info(LogTemplates.BOT_COGS_LOADED_SUMMARY, len(COGS) - failed, failed)
        return failed

    async def _on_app_command_error(
        self, interaction: discord.Interaction, error: Exception
    ) -> None:
        """Report unhandled slash-command errors to the invoking user only."""
        original = getattr(error, "original", error)
        command_name = getattr(interaction.command, "name", "<unknown>")
        logger.error(LogTemplates.BOT_SLASH_COMMAND_ERROR, command_name, original)

        error_msg = DiscordUIMessages.ERROR_OCCURRED.format(error=original)
        send = (
            interaction.followup.send
            if interaction.response.is_done()
            else interaction.response.send_message
        )
        try:
            await send(error_msg, ephemeral=True)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    async def _sync_commands(self) -> None:
        # Guild syncs show up immediately; the global sync can take a while to propagate.
        for guild_id in self.settings.discord.test_guild_ids:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            try:
                synced = await self.tree.sync(guild=guild)
            except discord.HTTPException as e:
                logger.warning(LogTemplates.BOT_SYNC_GUILD_FAILED, guild_id, e)
            else:
                logger.info(LogTemplates.BOT_SYNCED_GUILD, len(synced), guild_id)

        try:
            synced = await self.tree.sync()
        except discord.HTTPException as e:
            logger.warning(LogTemplates.BOT_SYNC_GLOBAL_FAILED, e)
        else:
            logger.info(LogTemplates.BOT_SYNCED_GLOBAL, len(synced))

    async def on_ready(self) -> None:
        user = self.user
        logger.info(LogTemplates.BOT_READY, user, getattr(user, "id", None))
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.listening, name=PRESENCE_NAME)
        )

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        """Tear down the playback session of a guild the bot was removed from."""
        session = self.container.session_registry.get(guild.id)
        if session is None:
            return

        logger.info(LogTemplates.BOT_GUILD_REMOVED, guild.id)
        await session.destroy(SessionDestroyReason.DISCONNECT)

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        # Sessions own their voice connections; destroying them leaves every channel.
        try:
            closed = await self.container.shutdown()
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)
        else:
            logger.info(LogTemplates.BOT_SESSIONS_CLOSED, closed)

        await super().close()
        self._shutdown_event.set()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    async def close_within(self, timeout: float) -> None:
        """Close the bot, giving up on the session teardown after ``timeout`` seconds."""
        try:
            await asyncio.wait_for(self.close(), timeout=timeout)
        except TimeoutError:
            logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, timeout)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT or SIGTERM, then disconnect every session before exiting."""

        async def runner() -> None:
            async with self:
                loop = asyncio.get_running_loop()
                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(
                        sig, lambda: asyncio.create_task(self.close_within(shutdown_timeout))
                    )
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
