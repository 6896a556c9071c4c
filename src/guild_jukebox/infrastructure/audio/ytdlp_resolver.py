"""TrackResolver implementation using yt-dlp for URL resolution and search."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError, ExtractorError

from guild_jukebox.application.interfaces.audio_resolver import TrackResolver
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.value_objects import StreamSource
from guild_jukebox.domain.shared.exceptions import (
    ResolutionError,
    StreamAcquisitionError,
    TrackNotFoundError,
)
from guild_jukebox.domain.shared.messages import ErrorMessages, LogTemplates
from guild_jukebox.infrastructure.audio.models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    LOG_URL_TRUNCATE,
    MAX_DURATION_SECONDS,
    MAX_TITLE_LENGTH,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

# yt-dlp wraps network and extractor failures in these.
_YTDLP_ERRORS: Final = (DownloadError, ExtractorError, OSError)

# ── Module-level state and patterns ────────────────────────────────────

_info_cache: dict[str, CacheEntry] = {}

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"^https?://"),
    re.compile(r"^www\."),
]


def _cache_get(url: str, now: float) -> YtDlpTrackInfo | None:
    cached = _info_cache.get(url)
    if cached is None:
        return None
    if now - cached.cached_at < CACHE_TTL:
        logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
        return cached.info
    _info_cache.pop(url, None)
    return None


def _cache_put(url: str, info: YtDlpTrackInfo, now: float) -> None:
    _info_cache[url] = CacheEntry(info=info, cached_at=now)
    if len(_info_cache) <= CACHE_MAX_SIZE:
        return

    expired = [k for k, entry in _info_cache.items() if now - entry.cached_at >= CACHE_TTL]
    for k in expired:
        _info_cache.pop(k, None)
    if expired:
        logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))

    # Still full: evict oldest entries (dicts keep insertion order)
    while len(_info_cache) > CACHE_MAX_SIZE:
        _info_cache.pop(next(iter(_info_cache)))


def clear_cache() -> None:
    _info_cache.clear()


class YtDlpResolver(TrackResolver):

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format or "bestaudio/best")

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    @staticmethod
    def _parse_info(data: dict[str, Any]) -> YtDlpTrackInfo:
        """Parse a raw yt-dlp info dict into a typed model.

        Extra fields are dropped by the model's ``extra="ignore"`` config.
        """
        return YtDlpTrackInfo.model_validate(data)

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        """Extract a single URL, consulting the module cache first."""
        now = time.time()
        cached = _cache_get(url, now)
        if cached is not None:
            return cached

        with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
            data = ydl.extract_info(url, download=False)

        if not isinstance(data, dict):
            return None

        info = self._parse_info(dict(data))
        _cache_put(url, info, now)
        return info

    def _search_sync(self, query: str, limit: int = 1) -> list[YtDlpTrackInfo]:
        search_query = f"ytsearch{limit}:{query}"
        with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
            data = ydl.extract_info(search_query, download=False)

        if not isinstance(data, dict):
            return []

        entries = data.get("entries", [])
        if not isinstance(entries, list):
            return []

        results = [self._parse_info(dict(e)) for e in entries if e]

        # Full search entries carry stream info; reuse it for open_stream.
        now = time.time()
        for info in results:
            if info.page_url and info.stream_url:
                _cache_put(info.page_url, info, now)
        return results

    def _info_to_track(self, info: YtDlpTrackInfo, query: str) -> Track:
        url = info.page_url
        if not url:
            logger.warning(LogTemplates.YTDLP_NO_URL_IN_INFO_DICT, query)
            raise TrackNotFoundError(query)

        duration = info.duration
        # Streams and very long uploads report no usable length
        if duration is not None and duration > MAX_DURATION_SECONDS:
            duration = None

        return Track(
            url=url,
            title=info.title[:MAX_TITLE_LENGTH],
            duration_seconds=duration,
        )

    async def resolve(self, query: str) -> Track:
        query = query.strip()
        try:
            if self.is_url(query):
                info = await asyncio.to_thread(self._extract_info_sync, query)
            else:
                results = await asyncio.to_thread(self._search_sync, query, 1)
                info = results[0] if results else None
        except _YTDLP_ERRORS as exc:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            raise ResolutionError(query, ErrorMessages.RESOLVER_UNREACHABLE.format(error=exc)) from exc

        if info is None:
            raise TrackNotFoundError(query)

        track = self._info_to_track(info, query)
        logger.info(LogTemplates.YTDLP_RESOLVED, query, track.title)
        return track

    async def open_stream(self, url: str) -> StreamSource:
        try:
            info = await asyncio.to_thread(self._extract_info_sync, url)
        except _YTDLP_ERRORS as exc:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            raise StreamAcquisitionError(url, ErrorMessages.EXTRACTION_FAILED.format(url=url)) from exc

        stream_url = info.stream_url if info else None
        if not stream_url:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, url)
            raise StreamAcquisitionError(url, ErrorMessages.NO_STREAM_URL_FOR_TRACK.format(url=url))

        return StreamSource(stream_url=stream_url, source_url=url)

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)
