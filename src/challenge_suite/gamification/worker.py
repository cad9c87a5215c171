"""arq worker that runs the reconciliation pass once a day.

Run with: arq challenge_suite.gamification.worker.WorkerSettings
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from arq import cron
from arq.connections import RedisSettings

from challenge_suite.config import get_settings
from challenge_suite.database import close_db, get_session, init_db
from challenge_suite.gamification.reconciliation import reconcile_all

logger = logging.getLogger(__name__)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Open the database pool on worker startup."""
    settings = get_settings()
    await init_db(settings.database_url)
    logger.info("Reconciliation worker started")


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    await close_db()
    logger.info("Reconciliation worker shut down")


async def nightly_reconciliation(ctx: dict) -> dict[str, int]:  # type: ignore[type-arg]
    """Scheduled task: repair vote counts, user stats and badges."""
    report = None
    async for db in get_session():
        report = await reconcile_all(db)
    if report is None:
        return {}
    logger.info(
        "Reconciliation done: %d submissions, %d users fixed, %d badges awarded",
        report.submissions_fixed,
        report.users_fixed,
        report.badges_awarded,
    )
    return asdict(report)


class WorkerSettings:
    """arq worker settings for periodic gamification maintenance."""

    functions = [nightly_reconciliation]
    cron_jobs = [
        cron(nightly_reconciliation, hour=get_settings().reconcile_hour_utc, minute=0, run_at_startup=False),
    ]
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    on_startup = startup
    on_shutdown = shutdown
    max_jobs = 1
    job_timeout = 1800
