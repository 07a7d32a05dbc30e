"""
Sofie Core auto-take library.

Modules:
  - ``config``    – JSON config loader (``cfg``)
  - ``playlist``  – PlaylistState, IterationResult and the poller errors
  - ``client``    – aiohttp client for the Core REST API
  - ``poller``    – TakePoller, the poll/take loop
  - ``watchdog``  – systemd notify heartbeat
"""
