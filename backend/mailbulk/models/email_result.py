# backend/mailbulk/models/email_result.py
from sqlalchemy import Column, Integer, JSON, ForeignKey
from mailbulk.db import Base

class EmailResult(Base):
    """One verification document per email, written by the worker pool."""

    __tablename__ = "email_results"

    # monotonic row id; also the export ordering key
    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("bulk_jobs.id", ondelete="CASCADE"), index=True, nullable=False)
    result = Column(JSON, nullable=False)
