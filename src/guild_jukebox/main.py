#!/usr/bin/env python3
"""Command-line entry point: configure logging, build the container and run the bot."""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from importlib import resources
from typing import TYPE_CHECKING, Any

from guild_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from guild_jukebox.config.settings import Settings

LOGGING_CONFIG_RESOURCE = "logging_config.json"

_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _read_logging_config() -> dict[str, Any]:
    """Load the dictConfig shipped inside the package."""
    text = resources.files("guild_jukebox").joinpath(LOGGING_CONFIG_RESOURCE).read_text(encoding="utf-8")
    return json.loads(text)


def setup_logging(log_level: str = "INFO") -> None:
    """Apply the packaged logging config, then force the root level to ``log_level``.

    A missing or broken config falls back to ``logging.basicConfig``.
    """
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        logging.config.dictConfig(_read_logging_config())
    except (FileNotFoundError, json.JSONDecodeError, ValueError) as exc:
        logging.basicConfig(level=resolved_level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, LOGGING_CONFIG_RESOURCE, exc)

    logging.getLogger().setLevel(resolved_level)


def _log_startup(logger: logging.Logger, settings: Settings) -> None:
    playback = settings.playback
    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    logger.info(
        LogTemplates.BOT_PLAYBACK_LIMITS,
        playback.idle_timeout_ms,
        playback.max_queue_size,
        playback.voice_connect_timeout_s,
    )


def main() -> int:
    from guild_jukebox.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    _log_startup(logger, settings)

    from guild_jukebox.config.container import create_container
    from guild_jukebox.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)

    logger.info(LogTemplates.BOT_STARTING_RUN)
    try:
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """Console script entry point (``guild-jukebox``)."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
