"""
Background Jobs

Maintenance jobs (such as the orphaned upload reaper) run in-process on an
APScheduler ``AsyncIOScheduler``.

Modules register their jobs at import or startup with ``register_job``;
``start_scheduler`` schedules everything registered so far. Jobs open their
own database sessions, must be safe to re-run, and report a summary dict
that the debug endpoints return when a job is run by hand.

Usage:
    from admissions.core.scheduler import register_job, start_scheduler, stop_scheduler

    register_job("documents_reap_orphaned_uploads", reap, IntervalTrigger(hours=1))
    await start_scheduler()
    ...
    await stop_scheduler()
"""

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Coroutine[Any, Any, Any]]

SCHEDULER_TIMEZONE = "UTC"

# A missed run is merged into one, a job never overlaps itself, and runs
# more than five minutes late are dropped.
JOB_DEFAULTS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": 300,
}


@dataclass(frozen=True)
class RegisteredJob:
    job_id: str
    func: JobFunc
    trigger: BaseTrigger


_scheduler: AsyncIOScheduler | None = None
_job_registry: dict[str, RegisteredJob] = {}


def _on_job_event(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error(
            f"Scheduled run of {event.job_id} raised: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.info(f"Scheduled run of {event.job_id} finished")


def _add_to_scheduler(job: RegisteredJob) -> None:
    _scheduler.add_job(job.func, trigger=job.trigger, id=job.job_id, replace_existing=True)
    logger.info(f"Scheduled job {job.job_id} ({job.trigger})")


def register_job(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    """
    Add a job to the registry, replacing any job with the same id.

    A job registered after ``start_scheduler`` is scheduled right away.
    """
    job = RegisteredJob(job_id=job_id, func=func, trigger=trigger)
    _job_registry[job_id] = job

    if _scheduler is not None:
        _add_to_scheduler(job)
    else:
        logger.debug(f"Registered job {job_id}; it will be scheduled on startup")


async def start_scheduler() -> AsyncIOScheduler:
    """Create the scheduler, schedule every registered job and start it."""
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("start_scheduler called twice; keeping the running scheduler")
        return _scheduler

    _scheduler = AsyncIOScheduler(timezone=SCHEDULER_TIMEZONE, job_defaults=JOB_DEFAULTS)
    _scheduler.add_listener(_on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    for job in _job_registry.values():
        _add_to_scheduler(job)

    _scheduler.start()
    logger.info(f"Scheduler started with {len(_job_registry)} job(s)")
    return _scheduler


async def stop_scheduler() -> None:
    """Shut the scheduler down, letting running jobs finish."""
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.info("Shutting down scheduler...")
        _scheduler.shutdown(wait=True)
        logger.info("Scheduler shut down")
    _scheduler = None


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Run a registered job now, outside its schedule.

    Job failures are reported in the returned dict, not raised.

    Raises:
        ValueError: If no job is registered under ``job_id``
    """
    job = _job_registry.get(job_id)
    if job is None:
        raise ValueError(f"Unknown job {job_id!r}. Registered: {sorted(_job_registry)}")

    started = datetime.now(UTC)
    outcome: dict[str, Any] = {"job_id": job_id, "executed_at": started.isoformat()}
    logger.info(f"Running job {job_id} on request")

    try:
        outcome["result"] = await job.func()
    except Exception as e:
        logger.error(f"Requested run of {job_id} failed: {e}", exc_info=True)
        outcome.update(status="error", error=str(e))
    else:
        outcome["status"] = "success"
    return outcome


def list_registered_jobs() -> list[dict[str, Any]]:
    """Registered jobs; once the scheduler runs, with next run time and pause state."""
    listing = []
    for job_id in _job_registry:
        entry: dict[str, Any] = {"job_id": job_id, "registered": True}
        if _scheduler is not None:
            scheduled = _scheduler.get_job(job_id)
            next_run = scheduled.next_run_time if scheduled else None
            entry["next_run_time"] = next_run.isoformat() if next_run else None
            entry["is_paused"] = next_run is None
        listing.append(entry)
    return listing


def pause_job(job_id: str) -> bool:
    """False if the job is not scheduled."""
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Cannot pause {job_id}: not scheduled")
        return False
    _scheduler.pause_job(job_id)
    logger.info(f"Job {job_id} paused")
    return True


def resume_job(job_id: str) -> bool:
    """False if the job is not scheduled."""
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Cannot resume {job_id}: not scheduled")
        return False
    _scheduler.resume_job(job_id)
    logger.info(f"Job {job_id} resumed")
    return True
