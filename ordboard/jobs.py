from __future__ import annotations

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ordboard.order_status import get_status_config
from ordboard.runtime import AppContainer


logger = logging.getLogger(__name__)


def build_scheduler(container: AppContainer) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")

    async def refresh_orders_job() -> None:
        changes = await asyncio.to_thread(container.tracking.refresh_active_orders)
        for change in changes:
            config = get_status_config(change.current_status)
            logger.info(
                "Order %s: %s -> %s (%s%%)",
                change.order_id,
                change.previous_status or "new",
                change.current_status,
                config.progress_weight,
            )

    scheduler.add_job(
        refresh_orders_job,
        "interval",
        seconds=container.settings.poll_interval_seconds,
        max_instances=1,
        coalesce=True,
    )
    return scheduler
