"""Run the Vault jobs until interrupted: ``python -m warden``."""

import asyncio
import signal

from warden.bootstrap import bootstrap
from warden.observability.logging import get_logger

logger = get_logger(__name__)


async def main() -> None:
    ctx = await bootstrap()
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await ctx.scheduler.start()
    try:
        await stop.wait()
        logger.info("shutdown_requested")
    finally:
        await ctx.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
