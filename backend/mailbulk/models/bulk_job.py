# backend/mailbulk/models/bulk_job.py
from sqlalchemy import Column, Integer, DateTime, func
from mailbulk.db import Base


class BulkJob(Base):
    __tablename__ = "bulk_jobs"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    total_records = Column(Integer, nullable=False)
