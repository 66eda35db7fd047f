"""Standalone queue worker.

Runs generation jobs from the shared Mongo queue outside the API process:

    python -m content_studio.worker

Notifications published here only reach subscribers of this process; API
clients observe results by polling ``GET /content/{id}``.
"""

import asyncio
import logging
import signal

from dotenv import load_dotenv

from content_studio.container import build_services
from content_studio.db.mongo import close_database, ensure_indexes

logger = logging.getLogger(__name__)


async def run() -> None:
    services = build_services()
    await ensure_indexes()
    await services.queue.initialize()

    worker = services.build_worker()
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await worker.start()
    logger.info(f"Worker {worker.worker_id} running, press Ctrl+C to stop")
    try:
        await stop.wait()
    finally:
        await worker.stop()
        await services.notifier.shutdown()
        await services.queue.close()
        await close_database()
        logger.info(f"Worker {worker.worker_id} stopped")


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run())


if __name__ == "__main__":
    main()
