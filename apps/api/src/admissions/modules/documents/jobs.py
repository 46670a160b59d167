"""
Documents Background Jobs

Orphaned upload reaper: deletes FileUploads no ApplicationDocument links to.

Orphans appear when removing a replaced upload fails after the replacement
has been committed, or the process stops before the removal runs.

Design Principles:
- Idempotent (safe to run multiple times)
- Bytes are deleted before the row; a failed row delete leaves a row
  the next run removes
- Individual failures are logged and do not stop the batch
- Uploads younger than the grace period are left alone

Schedule:
- Runs every ``settings.orphan_reaper_interval_minutes``
- Can be triggered manually via the job debug endpoints
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from admissions.core.config import settings
from admissions.core.database import async_session_maker
from admissions.core.scheduler import register_job
from admissions.modules.documents import repository
from admissions.modules.documents.models import FileUpload
from admissions.modules.documents.storage import DocumentStore, get_document_store

logger = logging.getLogger(__name__)

JOB_ID_REAP_ORPHANED_UPLOADS = "documents_reap_orphaned_uploads"

BATCH_SIZE = 500


async def _reap_upload(upload: FileUpload, store: DocumentStore) -> dict[str, Any]:
    """Delete one orphaned upload in its own session."""
    async with async_session_maker() as db:
        # Re-check: a document may have been linked since the batch was read
        if await repository.is_upload_linked(db, upload.id):
            return {"file_id": str(upload.id), "status": "skipped", "reason": "linked"}

        bytes_deleted = await store.delete(upload.storage_path)
        rows = await repository.delete_file_upload(db, upload.id)
        await db.commit()

    logger.info(f"Reaped orphaned upload {upload.id} ({upload.storage_path})")
    return {
        "file_id": str(upload.id),
        "status": "deleted" if rows else "skipped",
        "bytes_deleted": bytes_deleted,
    }


async def reap_orphaned_uploads(store: DocumentStore | None = None) -> dict[str, Any]:
    """
    Delete uploads that no document links to and that are older than the grace period.

    Returns:
        Dict with job execution summary including:
        - executed_at: When the job ran
        - results: Per-upload results
        - total_deleted: Uploads removed
        - total_errors: Number of processing errors
    """
    store = store or get_document_store()
    executed_at = datetime.now(UTC)
    threshold = executed_at - timedelta(minutes=settings.orphan_grace_period_minutes)

    logger.info(f"Starting orphaned upload reaper. Threshold: {threshold.isoformat()}")

    results: dict[str, Any] = {
        "executed_at": executed_at.isoformat(),
        "results": [],
        "total_deleted": 0,
        "total_errors": 0,
    }

    async with async_session_maker() as db:
        orphans = await repository.list_orphaned_uploads(db, threshold, limit=BATCH_SIZE)

    logger.info(f"Found {len(orphans)} orphaned uploads")

    for upload in orphans:
        try:
            result = await _reap_upload(upload, store)
            results["results"].append(result)
            if result["status"] == "deleted":
                results["total_deleted"] += 1
        except Exception as e:
            logger.error(f"Error reaping upload {upload.id}: {e}", exc_info=True)
            results["results"].append(
                {"file_id": str(upload.id), "status": "error", "error": str(e)}
            )
            results["total_errors"] += 1

    logger.info(
        f"Orphaned upload reaper completed. "
        f"Deleted: {results['total_deleted']}, Errors: {results['total_errors']}"
    )
    return results


def register_document_jobs() -> None:
    """Register document background jobs with the scheduler."""
    register_job(
        job_id=JOB_ID_REAP_ORPHANED_UPLOADS,
        func=reap_orphaned_uploads,
        trigger=IntervalTrigger(minutes=settings.orphan_reaper_interval_minutes),
    )
    logger.info(
        f"Registered job: {JOB_ID_REAP_ORPHANED_UPLOADS} "
        f"(interval: {settings.orphan_reaper_interval_minutes} minutes)"
    )
