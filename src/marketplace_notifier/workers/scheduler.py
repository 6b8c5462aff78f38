from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from marketplace_notifier.config import AppConfig
from marketplace_notifier.repositories import NotificationBuffer, SeenStore, load_category_averages
from marketplace_notifier.services import (
    EstimatorConfig,
    NotificationGate,
    NotifierPipeline,
    ResaleEstimator,
    RunSummary,
    SmtpNotifier,
    make_page_source,
)

logger = logging.getLogger(__name__)


def build_pipeline(config: AppConfig) -> NotifierPipeline:
    averages = load_category_averages(config.paths.category_averages)
    estimator = ResaleEstimator(
        EstimatorConfig(enabled=config.price_estimation_enabled, category_averages=averages)
    )
    notifier = SmtpNotifier(
        host=config.email.smtp_host,
        port=config.email.smtp_port,
        username=config.email.sender,
        password=config.email.password,
        timeout=config.email.timeout_secs,
    )
    gate = NotificationGate(
        notifier=notifier,
        buffer=NotificationBuffer(config.paths.buffer),
        sender=config.email.sender,
        recipients=config.email.recipients,
        active_start=config.active_hours.start,
        active_end=config.active_hours.end,
        html=config.fetch_listing_details,
    )
    return NotifierPipeline(
        config=config,
        source_factory=make_page_source,
        seen=SeenStore(config.paths.seen_items),
        estimator=estimator,
        gate=gate,
    )


def run_safely(pipeline: NotifierPipeline) -> Optional[RunSummary]:
    """Run once, logging instead of raising so the schedule keeps going."""
    try:
        return pipeline.run()
    except Exception:
        logger.exception("Scheduled run failed")
        return None


def make_scheduler(pipeline: NotifierPipeline, schedule: str) -> BlockingScheduler:
    scheduler = BlockingScheduler()
    # Two instances allowed: the running one and at most one waiting on the
    # pipeline's run lock. A trigger firing while both are live is skipped by
    # APScheduler; coalesce only merges runs that misfired.
    scheduler.add_job(
        run_safely,
        CronTrigger.from_crontab(schedule),
        args=[pipeline],
        id="marketplace-run",
        max_instances=2,
        coalesce=True,
        next_run_time=datetime.now(),
    )
    return scheduler


def run_forever(config: AppConfig) -> None:
    pipeline = build_pipeline(config)
    scheduler = make_scheduler(pipeline, config.schedule)
    logger.info(
        "Watching %d terms on schedule '%s'", len(config.search_terms), config.schedule
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutdown signal received; stopping scheduler")
        scheduler.shutdown(wait=False)
