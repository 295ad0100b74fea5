# backend/mailbulk/routers/bulk.py
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..errors import JobNotFound, StoreFailure, ExportConversionFailure, SerializationFailure
from ..schemas.bulk import JobStatusResponse, ResultFormat
from ..services.export import export_results
from ..services.status import get_job_status

router = APIRouter()

# LIMIT/OFFSET are bound as BIGINT by the store
MAX_PAGE_VALUE = 2**63 - 1


# ---------------------------------------------------
# Status Route
# ---------------------------------------------------
@router.get("/{job_id}", response_model=JobStatusResponse)
async def bulk_job_status(
    job_id: int = Path(...),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await get_job_status(db, job_id)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="job not found")
    except StoreFailure:
        raise HTTPException(status_code=500, detail="internal server error")


# ---------------------------------------------------
# Download Route
# ---------------------------------------------------
@router.get("/{job_id}/download", response_model=None)
async def bulk_job_download(
    job_id: int = Path(...),
    result_format: ResultFormat = Query(ResultFormat.json, alias="format"),
    limit: Optional[int] = Query(None, ge=0, le=MAX_PAGE_VALUE),
    offset: Optional[int] = Query(None, ge=0, le=MAX_PAGE_VALUE),
    db: AsyncSession = Depends(get_db),
):
    try:
        body = await export_results(db, job_id, result_format, limit, offset)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="job not found")
    except ExportConversionFailure:
        raise HTTPException(status_code=500, detail="export failed")
    except (StoreFailure, SerializationFailure):
        raise HTTPException(status_code=500, detail="internal server error")

    headers = {"Content-Type": body.media_type}
    if result_format == ResultFormat.csv:
        headers["Content-Disposition"] = f'attachment; filename="bulk_{job_id}_results.csv"'
    return Response(body.content, headers=headers)
