from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from ..core.policy import EnginePolicy
from .resolver import MissingPunchOutResolver

logger = logging.getLogger(__name__)

JOB_ID = "missing-punch-out-resolver"


def run_resolver_job(resolver: MissingPunchOutResolver) -> None:
    try:
        summary = resolver.run_for_today()
    except Exception:
        logger.exception("Scheduled missing punch-out pass failed")
        return
    if summary.adjustments_made or summary.failed:
        logger.info("Scheduled missing punch-out pass: %s", summary.to_dict())


def build_scheduler(
    resolver: MissingPunchOutResolver,
    *,
    policy: EnginePolicy,
    timezone: str | None = None,
) -> BackgroundScheduler:
    """Background scheduler re-scanning recent open records every interval."""

    kwargs = {"timezone": timezone} if timezone else {}
    scheduler = BackgroundScheduler(
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": policy.resolver_interval_minutes * 60,
        },
        **kwargs,
    )
    scheduler.add_job(
        run_resolver_job,
        "interval",
        minutes=policy.resolver_interval_minutes,
        args=[resolver],
        id=JOB_ID,
        replace_existing=True,
    )
    return scheduler
