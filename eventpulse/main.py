"""Command line entry point for the event reminder service.

With the API enabled the service runs inside uvicorn, started and stopped by
the FastAPI lifespan. Without it the sweeps run headless until SIGINT or
SIGTERM.
"""

import argparse
import asyncio
import signal
from pathlib import Path
from typing import List, Optional

from config.config import init_config
from eventpulse.app.reminder_app import ReminderApp
from eventpulse.utils.logger import log_error, log_info


async def run_headless(reminder_app: ReminderApp) -> None:
    """Run the sweeps until the process is asked to stop."""
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:  # pragma: no cover - Windows
            pass

    await reminder_app.startup()
    log_info("Reminder service running headless; press Ctrl+C to stop")
    try:
        await stop_event.wait()
    finally:
        await reminder_app.shutdown()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Event reminder push service")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--no-api", action="store_true", help="Run sweeps without the HTTP API")
    parser.add_argument("--port", type=int, default=None, help="Override api.port")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = init_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        log_error(f"Failed to load configuration: {e}")
        return 1

    reminder_app = ReminderApp(config=config)

    if args.no_api or not config.api.enabled:
        asyncio.run(run_headless(reminder_app))
        return 0

    import uvicorn
    from eventpulse.api.server import create_app

    uvicorn.run(
        create_app(reminder_app),
        host=config.api.host,
        port=args.port or config.api.port,
    )
    return 0
