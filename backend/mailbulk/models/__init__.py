from .bulk_job import BulkJob
from .email_result import EmailResult

__all__ = ["BulkJob", "EmailResult"]
