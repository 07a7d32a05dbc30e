# Sofie Take Poller
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
TakePoller — polls the active playlist and takes the next part.

One iteration:
    1. GET the playlist publication
    2. pick the first playlist, require a next part instance
    3. POST take for (playlist id, current part instance id)
    4. emit the playlist record
Then the driver waits the poll delay and repeats.

run_once() never raises for the known failures; it returns an
IterationResult so the driver decides what to do.  run() stops at the first
failed iteration and hands that result back to the caller.
"""

import asyncio
import json
import logging
import sys

from .client import CoreClient
from .config import cfg
from .playlist import (
    IterationResult,
    PollerError,
    PlaylistState,
    select_active_playlist,
)
from .watchdog import notify_status

log = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 2000


def emit_to_stdout(playlist: PlaylistState):
    """Write the playlist record as a single JSON line."""
    sys.stdout.write(json.dumps(playlist.raw, sort_keys=True, default=str) + "\n")
    sys.stdout.flush()


class TakePoller:
    """Sequential poll → validate → take → emit → sleep loop."""

    def __init__(self, client: CoreClient, *, delay: float | None = None,
                 emit=emit_to_stdout, sleep=None):
        self.client = client
        if delay is None:
            delay = float(cfg("poll", "delay_ms", default=DEFAULT_DELAY_MS)) / 1000
        self.delay = delay
        self._emit = emit
        self._sleep = sleep or self._interruptible_sleep
        self._stop_event: asyncio.Event | None = None
        self._stop_requested = False
        self.iterations = 0
        self.takes = 0
        self.last_playlist: PlaylistState | None = None

    @property
    def stopping(self) -> bool:
        return self._stop_requested

    def stop(self):
        """Ask the driver loop to finish after the current iteration."""
        if not self._stop_requested:
            log.info("Stop requested")
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()

    def status_line(self) -> str:
        """One-line summary for systemd STATUS=."""
        line = f"polls={self.iterations} takes={self.takes}"
        pl = self.last_playlist
        if pl is not None:
            line += f" last={pl.label} next={pl.next_part_instance_id} hold={pl.hold_state_name}"
        return line

    async def _interruptible_sleep(self, seconds: float):
        # Created on first use so the poller can be built outside a running loop
        if self._stop_event is None:
            self._stop_event = asyncio.Event()
            if self._stop_requested:
                self._stop_event.set()
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    # ── Single iteration ──

    async def run_once(self) -> IterationResult:
        self.iterations += 1
        try:
            playlists = await self.client.fetch_playlists()
            result = select_active_playlist(playlists)
            if not result.ok:
                return result

            playlist = result.playlist
            if not playlist.is_active:
                log.warning("Playlist %s is not active, take will likely be rejected",
                            playlist.id)
            log.info("Take %s [%s, hold=%s]: %s -> %s", playlist.label, playlist.id,
                     playlist.hold_state_name,
                     playlist.current_part_instance_id, playlist.next_part_instance_id)
            await self.client.take(playlist)
        except PollerError as e:
            return IterationResult.failure(e)

        self.takes += 1
        self.last_playlist = playlist
        self._emit(playlist)
        notify_status(self.status_line())
        return result

    # ── Driver loop ──

    async def run(self, max_iterations: int | None = None) -> IterationResult | None:
        """Poll until stopped or until an iteration fails.

        Returns the failing result, the last successful result when
        max_iterations is reached, or None if stopped before any iteration.
        """
        result = None
        count = 0
        while not self.stopping:
            result = await self.run_once()
            count += 1
            if not result.ok:
                log.error("Poller stopped: %s: %s", type(result.error).__name__, result.error)
                return result
            if max_iterations is not None and count >= max_iterations:
                break
            await self._sleep(self.delay)
        return result
