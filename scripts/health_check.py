#!/usr/bin/env python
"""Simple health check utility.

This script prints the API configuration and whether the required
credentials are present in the environment.  With ``--ping`` it also asks
the API for the market clock, which verifies the base URL and the keys in
one round trip.  Operators can use it to check an environment before
running anything that trades.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os

from apca import GetClock, HttpStatusError, Settings, client_from_env, configure_logging

logger = logging.getLogger(__name__)

KEYS = [
    "APCA_API_KEY_ID",
    "APCA_API_SECRET_KEY",
    "APCA_API_SECRET_KEY_FILE",
    "APCA_API_BASE_URL",
    "APCA_PAPER",
    "APCA_TIMEOUT_SECONDS",
    "APCA_MAX_RETRIES",
    "APCA_MAX_REQUESTS_PER_MINUTE",
    "LOG_LEVEL",
]


async def ping(settings: Settings) -> bool:
    client = client_from_env(settings)
    try:
        clock = await client.send(GetClock())
    except HttpStatusError as exc:
        logger.error("API answered %s", exc.status)
        return False
    print(f"Market open: {clock.is_open} (next open {clock.next_open.isoformat()})")
    return True


def main() -> None:
    ap = argparse.ArgumentParser(description="Report the API client configuration.")
    ap.add_argument("--ping", action="store_true", help="Also request the market clock.")
    args = ap.parse_args()
    configure_logging()

    print("Health Check:")
    for key in KEYS:
        val = os.environ.get(key)
        status = "set" if val else "missing"
        print(f"{key}: {status}")
    settings = Settings.from_env()
    print(f"Base URL: {settings.base_url}")
    print(f"Credentials: {'present' if settings.has_credentials else 'missing'}")
    if args.ping and not asyncio.run(ping(settings)):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
