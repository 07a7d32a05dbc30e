# Sofie Take Poller
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
HTTP client for the Sofie Core REST API (api/0).

Only two calls are used:
    GET  /api/0/publication/rundownPlaylists/{selector}/{token}
    POST /api/0/action/take/{studio_id}/{sequence_index}/{playlist_id}/{current_part_instance_id}

Any aiohttp failure (connection refused, non-2xx, bad JSON) is re-raised as
TransportError.  Nothing here retries.

Usage:
    client = CoreClient()
    await client.start()
    playlists = await client.fetch_playlists()
    await client.take(playlists[0])
    await client.stop()
"""

import asyncio
import logging
from urllib.parse import quote

import aiohttp

from .config import cfg
from .playlist import PlaylistState, TransportError, parse_playlists

logger = logging.getLogger(__name__)

DEFAULT_CORE_URL = "http://localhost:3000"

# Opaque path tokens expected by Core; not derived from playlist data
PLAYLIST_SELECTOR = "{}"
PUBLICATION_TOKEN = "aa"
STUDIO_ID = "aa"
SEQUENCE_INDEX = "0"

PLAYLISTS_PATH = "/api/0/publication/rundownPlaylists/{selector}/{token}"
TAKE_PATH = "/api/0/action/take/{studio_id}/{sequence_index}/{playlist_id}/{part_instance_id}"

# Sent when the playlist has no current part instance.  A missing or empty
# id goes out as an explicit null, never as "undefined" or an empty segment.
NULL_SEGMENT = "null"


def _segment(value) -> str:
    if value is None or value == "":
        return NULL_SEGMENT
    return quote(str(value), safe="")


class CoreClient:
    """aiohttp session bound to one Sofie Core instance."""

    def __init__(self, base_url: str | None = None, *,
                 selector: str | None = None, token: str | None = None,
                 studio_id: str | None = None, sequence_index: str | None = None,
                 timeout: float | None = None):
        self.base_url = (base_url or cfg("core", "url", default=DEFAULT_CORE_URL)).rstrip("/")
        self.selector = selector if selector is not None else cfg(
            "publication", "selector", default=PLAYLIST_SELECTOR)
        self.token = token if token is not None else cfg(
            "publication", "token", default=PUBLICATION_TOKEN)
        self.studio_id = studio_id if studio_id is not None else cfg(
            "take", "studio_id", default=STUDIO_ID)
        self.sequence_index = str(sequence_index if sequence_index is not None else cfg(
            "take", "sequence_index", default=SEQUENCE_INDEX))
        self.timeout = timeout if timeout is not None else cfg("core", "timeout")

        self._session: aiohttp.ClientSession | None = None

    # ── URLs ──

    @property
    def playlists_url(self) -> str:
        # The selector is a JSON literal, so only the token is quoted
        path = PLAYLISTS_PATH.format(selector=self.selector, token=_segment(self.token))
        return self.base_url + path

    def take_url(self, playlist_id, current_part_instance_id) -> str:
        path = TAKE_PATH.format(
            studio_id=_segment(self.studio_id),
            sequence_index=_segment(self.sequence_index),
            playlist_id=_segment(playlist_id),
            part_instance_id=_segment(current_part_instance_id),
        )
        return self.base_url + path

    # ── Lifecycle ──

    async def start(self):
        if self._session:
            return
        connector = aiohttp.TCPConnector(
            limit=10,
            ttl_dns_cache=300,
            keepalive_timeout=60,
            force_close=False,
        )
        kwargs = {}
        if self.timeout:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=float(self.timeout))
        self._session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": "SofieTakePoller/1.0"},
            **kwargs,
        )
        logger.info("Core client ready -> %s", self.base_url)

    async def stop(self):
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc):
        await self.stop()

    def _require_session(self) -> aiohttp.ClientSession:
        if not self._session:
            raise RuntimeError("CoreClient.start() has not been called")
        return self._session

    # ── API calls ──

    async def fetch_playlists(self) -> list[PlaylistState]:
        """GET the playlist publication and parse it."""
        session = self._require_session()
        url = self.playlists_url
        try:
            async with session.get(url, raise_for_status=True) as resp:
                body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError covers both bad JSON and bodies that are not UTF-8
            raise TransportError(f"GET {url} failed: {e!r}") from e
        playlists = parse_playlists(body)
        logger.debug("Fetched %d playlist(s)", len(playlists))
        return playlists

    async def take(self, playlist: PlaylistState):
        """POST a take for *playlist*.  The response body is not read."""
        session = self._require_session()
        url = self.take_url(playlist.id, playlist.current_part_instance_id)
        try:
            async with session.post(url, raise_for_status=True) as resp:
                logger.debug("Take sent for %s (HTTP %d)", playlist.id, resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"POST {url} failed: {e!r}") from e
