"""Entrypoint for Standup Pulse.

``python -m standup_pulse.main`` serves the API; ``python -m
standup_pulse.main dispatch`` runs a single reminder pass for a cron job.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os

import uvicorn

from .api import create_app
from .config import Settings, load_settings
from .db import Database
from .dispatcher import NotificationDispatcher
from .slack_client import SlackClient


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )


async def dispatch_once(settings: Settings) -> dict[str, int]:
    database = Database(settings.database_path)
    client = SlackClient(timeout=settings.slack_timeout)
    try:
        dispatcher = NotificationDispatcher(
            database, database, database, client, concurrency=settings.dispatch_concurrency
        )
        result = await dispatcher.run_daily()
    finally:
        await client.close()
    return result.as_dict()


def run(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="standup_pulse")
    parser.add_argument("command", nargs="?", choices=("serve", "dispatch"), default="serve")
    parser.add_argument("--env-file", default=os.getenv("STANDUP_PULSE_ENV"))
    args = parser.parse_args(argv)

    settings = load_settings(args.env_file)
    configure_logging(settings.log_level)

    if args.command == "dispatch":
        print(json.dumps(asyncio.run(dispatch_once(settings))))
        return

    app = create_app(settings)
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":  # pragma: no cover
    run()
