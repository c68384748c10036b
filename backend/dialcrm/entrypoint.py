import asyncio
import logging
import signal

import uvicorn

from dialcrm.core.config import settings
from dialcrm.main import app

logger = logging.getLogger(__name__)


async def serve() -> None:
    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    server = uvicorn.Server(config)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_event.set)

    server_task = asyncio.create_task(server.serve())
    logger.info("Serving %s on %s:%s", settings.app_name, settings.host, settings.port)
    await stop_event.wait()
    logger.info("Shutdown requested, draining connections")
    server.should_exit = True
    await server_task


if __name__ == "__main__":
    asyncio.run(serve())
