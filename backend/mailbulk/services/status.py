# backend/mailbulk/services/status.py
import logging

from sqlalchemy import select, func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import JobNotFound, StoreFailure
from ..models.bulk_job import BulkJob
from ..models.email_result import EmailResult
from ..schemas.bulk import JobStatus, JobStatusSummary, JobStatusResponse

logger = logging.getLogger("mailbulk.status")

REACHABILITY_CATEGORIES = ("safe", "risky", "invalid", "unknown")


def derive_job_status(total_processed: int, total_records: int) -> JobStatus:
    # more rows than expected still counts as done
    if total_processed < total_records:
        return JobStatus.running
    return JobStatus.completed


async def fetch_job(db: AsyncSession, job_id: int) -> BulkJob:
    try:
        job = await db.get(BulkJob, job_id)
    except SQLAlchemyError as e:
        logger.error("Failed to get job record for job_id=%s: %s", job_id, e)
        raise StoreFailure("fetch_job", job_id) from e

    if job is None:
        raise JobNotFound(job_id)
    return job


def _aggregate_statement(job_id: int):
    is_reachable = EmailResult.result["is_reachable"].as_string()
    counts = [
        func.count(case((is_reachable == category, 1))).label(f"{category}_count")
        for category in REACHABILITY_CATEGORIES
    ]
    return (
        select(func.count(EmailResult.id).label("total_processed"), *counts)
        .where(EmailResult.job_id == job_id)
    )


async def get_job_status(db: AsyncSession, job_id: int) -> JobStatusResponse:
    """
    Build the status view of a bulk job from its metadata row and one
    aggregate query over its result rows. Nothing is cached or written.
    """
    job = await fetch_job(db, job_id)

    try:
        row = (await db.execute(_aggregate_statement(job_id))).one()
    except SQLAlchemyError as e:
        logger.error("Failed to get aggregate info for job_id=%s: %s", job_id, e)
        raise StoreFailure("aggregate_results", job_id) from e

    # COUNT may come back NULL from some drivers when there are no rows
    total_processed = int(row.total_processed or 0)
    summary = JobStatusSummary(
        total_safe=int(row.safe_count or 0),
        total_risky=int(row.risky_count or 0),
        total_invalid=int(row.invalid_count or 0),
        total_unknown=int(row.unknown_count or 0),
    )
    total_records = int(job.total_records or 0)

    return JobStatusResponse(
        job_id=job.id,
        created_at=job.created_at,
        total_records=total_records,
        total_processed=total_processed,
        summary=summary,
        job_status=derive_job_status(total_processed, total_records),
    )
