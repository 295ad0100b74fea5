# backend/mailbulk/services/export.py
import csv
import io
import json
import logging
from collections import namedtuple
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import ConversionError, ExportConversionFailure, SerializationFailure, StoreFailure
from ..models.email_result import EmailResult
from ..schemas.bulk import ResultFormat
from .flatten import CSV_HEADER, flatten
from .status import fetch_job

logger = logging.getLogger("mailbulk.export")

ExportBody = namedtuple("ExportBody", ["content", "media_type"])

MEDIA_TYPES = {
    ResultFormat.json: "application/json",
    ResultFormat.csv: "text/csv",
}


def default_limit(result_format: ResultFormat) -> int:
    if result_format == ResultFormat.csv:
        return settings.CSV_DEFAULT_LIMIT
    return settings.JSON_DEFAULT_LIMIT


async def fetch_result_documents(db: AsyncSession, job_id: int, limit: int, offset: int) -> List[Any]:
    """Return one page of stored documents for a job, in insertion order."""
    stmt = (
        select(EmailResult.result)
        .where(EmailResult.job_id == job_id)
        .order_by(EmailResult.id)
        .limit(limit)
        .offset(offset)
    )
    try:
        return list((await db.execute(stmt)).scalars().all())
    except SQLAlchemyError as e:
        logger.error(
            "Failed to get results for job_id=%s limit=%s offset=%s: %s",
            job_id, limit, offset, e,
        )
        raise StoreFailure("fetch_results", job_id) from e


def render_json(job_id: int, documents: List[Any]) -> bytes:
    try:
        return json.dumps({"results": documents}, allow_nan=False, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        logger.error("Failed to encode json results for job_id=%s: %s", job_id, e)
        raise SerializationFailure(job_id, str(e)) from e


def render_csv(job_id: int, documents: List[Any], limit: int, offset: int) -> bytes:
    # convert every row before writing anything; a bad row fails the whole page
    try:
        rows = [flatten(doc).as_row() for doc in documents]
    except ConversionError as e:
        logger.error(
            "Failed to convert results to csv for job_id=%s limit=%s offset=%s: %s",
            job_id, limit, offset, e,
        )
        raise ExportConversionFailure(job_id, limit, offset, e) from e

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADER)
    writer.writerows(rows)
    return buf.getvalue().encode("utf-8")


async def export_results(
    db: AsyncSession,
    job_id: int,
    result_format: ResultFormat = ResultFormat.json,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> ExportBody:
    """
    Export one page of a job's verification results.

    JSON passes the stored documents through untouched. CSV flattens each
    of them into the fixed column set and fails as a whole if any row
    cannot be converted.
    """
    if limit is None:
        limit = default_limit(result_format)
    if offset is None:
        offset = 0

    await fetch_job(db, job_id)
    documents = await fetch_result_documents(db, job_id, limit, offset)

    if result_format == ResultFormat.csv:
        content = render_csv(job_id, documents, limit, offset)
    else:
        content = render_json(job_id, documents)

    return ExportBody(content, MEDIA_TYPES[result_format])
