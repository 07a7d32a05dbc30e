#!/usr/bin/env python3
# Sofie Take Poller
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
Sofie auto-take service.

Polls Sofie Core for the active rundown playlist and takes the next part
every poll interval.  Stops at the first failure: no playlist, no next part,
or any HTTP error.  Each take prints the playlist document to stdout as one
JSON line; logs go to stderr.

Usage:
    python3 take_poller.py            # run until stopped or failed
    python3 take_poller.py --once     # one iteration, exit status = result
    python3 take_poller.py --verbose  # debug logging

As systemd service:
    Type=notify, WatchdogSec=60
"""

import argparse
import asyncio
import logging
import os
import signal
import sys

# Ensure services/ is on the path for sibling imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
from sofie.client import CoreClient
from sofie.config import cfg
from sofie.poller import TakePoller
from sofie.watchdog import DEFAULT_INTERVAL, sd_notify, watchdog_loop

logger = logging.getLogger("take-poller")

EXIT_OK = 0
EXIT_FAILED = 1


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] [TAKE] %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


async def run_service(once: bool = False, client: CoreClient | None = None) -> int:
    """Run the poller with signal handling and watchdog.  Returns exit status."""
    client = client or CoreClient()
    await client.start()
    poller = TakePoller(client)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, poller.stop)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass

    interval = cfg("watchdog", "interval", default=DEFAULT_INTERVAL)
    watchdog_task = asyncio.create_task(watchdog_loop(interval, status=poller.status_line))

    logger.info("Polling %s every %.1fs", client.playlists_url, poller.delay)
    try:
        result = await poller.run(max_iterations=1 if once else None)
    finally:
        sd_notify("STOPPING=1")
        watchdog_task.cancel()
        try:
            await watchdog_task
        except asyncio.CancelledError:
            pass
        await client.stop()

    if result is not None and not result.ok:
        return EXIT_FAILED
    logger.info("Done after %d take(s)", poller.takes)
    return EXIT_OK


def main(argv=None):
    parser = argparse.ArgumentParser(description="Take the next part on the active Sofie playlist")
    parser.add_argument("--once", action="store_true", help="Run a single iteration and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    sys.exit(asyncio.run(run_service(once=args.once)))


if __name__ == "__main__":
    main()
