from __future__ import annotations

import asyncio
import logging

import uvicorn

from ordboard.api import create_api
from ordboard.jobs import build_scheduler
from ordboard.runtime import build_container


async def run() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    container = build_container()
    scheduler = build_scheduler(container)
    scheduler.start()

    api = create_api(container=container)
    config = uvicorn.Config(
        app=api,
        host=container.settings.web_host,
        port=container.settings.web_port,
        log_level="info",
    )
    server = uvicorn.Server(config=config)

    try:
        await server.serve()
    finally:
        scheduler.shutdown(wait=False)
        container.close()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
