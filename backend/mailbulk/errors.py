# backend/mailbulk/errors.py
from typing import Optional


class BulkError(Exception):
    """Base class for failures raised while serving a bulk job request."""


class JobNotFound(BulkError):
    def __init__(self, job_id: int):
        self.job_id = job_id
        super().__init__(f"bulk job {job_id} not found")


class StoreFailure(BulkError):
    """A read query against the store failed. Never retried here."""

    def __init__(self, operation: str, job_id: int):
        self.operation = operation
        self.job_id = job_id
        super().__init__(f"store query '{operation}' failed for job {job_id}")


# ---------------------------------------------------
# Flattening errors
# ---------------------------------------------------
class ConversionError(BulkError):
    """A stored verification document does not fit the flat CSV schema."""


class MalformedDocument(ConversionError):
    def __init__(self, reason: str = "top level should be an object"):
        self.reason = reason
        super().__init__(reason)


class TypeMismatch(ConversionError):
    def __init__(self, field: str, expected: str):
        self.field = field
        self.expected = expected
        super().__init__(f"{field} should be {expected}")


# ---------------------------------------------------
# Export errors
# ---------------------------------------------------
class ExportConversionFailure(BulkError):
    def __init__(self, job_id: int, limit: int, offset: int, cause: ConversionError):
        self.job_id = job_id
        self.limit = limit
        self.offset = offset
        self.cause = cause
        super().__init__(
            f"csv export failed for job {job_id} (limit={limit}, offset={offset}): {cause}"
        )


class SerializationFailure(BulkError):
    def __init__(self, job_id: int, reason: Optional[str] = None):
        self.job_id = job_id
        self.reason = reason
        super().__init__(f"failed to encode results for job {job_id}: {reason}")
