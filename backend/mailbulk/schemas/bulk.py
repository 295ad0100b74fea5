# backend/mailbulk/schemas/bulk.py
import enum
from datetime import datetime

from pydantic import BaseModel


class JobStatus(str, enum.Enum):
    running = "running"
    completed = "completed"


class ResultFormat(str, enum.Enum):
    json = "json"
    csv = "csv"


class JobStatusSummary(BaseModel):
    total_safe: int = 0
    total_risky: int = 0
    total_invalid: int = 0
    total_unknown: int = 0


class JobStatusResponse(BaseModel):
    job_id: int
    created_at: datetime
    total_records: int
    total_processed: int
    summary: JobStatusSummary
    job_status: JobStatus
