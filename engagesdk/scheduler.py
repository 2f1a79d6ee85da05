from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from engagesdk.config import Settings
from engagesdk.logging_setup import get_logger


def start_background_upload(
    upload: Callable[[], object],
    *,
    settings: Settings,
    start_delay_s: float | None = None,
    repeat_s: float | None = None,
) -> BackgroundScheduler:
    """Run ``upload`` periodically on a background thread.

    The first run happens after the start delay, then every repeat interval.
    Overlapping runs are skipped rather than queued.
    """
    logger = get_logger("scheduler")
    delay = settings.BACKGROUND_UPLOAD_START_DELAY_S if start_delay_s is None else start_delay_s
    every = settings.BACKGROUND_UPLOAD_REPEAT_S if repeat_s is None else repeat_s

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        upload,
        IntervalTrigger(seconds=every, start_date=datetime.now() + timedelta(seconds=delay)),
        name="engagesdk_upload",
        max_instances=1,
        coalesce=True,
        misfire_grace_time=30,
    )
    scheduler.start()
    logger.info("Background upload every %.0fs (first after %.0fs)", every, delay)
    return scheduler


def run_schedule(upload: Callable[[], object], *, settings: Settings, enable: bool = False) -> None:
    logger = get_logger("scheduler")
    if not enable:
        logger.info("Schedule disabled. Pass --enable to start the scheduler.")
        print("Schedule disabled. Pass --enable to start the scheduler.")
        return

    scheduler = start_background_upload(upload, settings=settings)
    print(f"Scheduler started, uploading every {settings.BACKGROUND_UPLOAD_REPEAT_S:.0f}s")

    # Keep the process alive until interrupted
    try:
        while True:
            time.sleep(1.0)
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped.")
        scheduler.shutdown()
