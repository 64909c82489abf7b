"""
Exceptions raised by the enhancement pipeline and the API layer.

Job-scoped failures end up in the job's ``error`` field as ``str(exc)``, so
messages here are written for the end user.
"""
from typing import Optional


class EnhancerError(Exception):
    """Base exception for all resume enhancer errors"""


class InvalidFileReference(EnhancerError):
    """The job's file reference can't be resolved to a storage object"""

    def __init__(self, reference: str, message: str = "Invalid file URL format"):
        self.reference = reference
        super().__init__(message)


class StorageError(EnhancerError):
    """Object storage download/upload failure"""


class ExtractionError(EnhancerError):
    """Text could not be extracted from the uploaded document"""


class UpstreamServiceError(EnhancerError):
    """
    The enhancement (LLM) service failed or returned something unusable.

    Retried by the worker's retry policy before it becomes a job error.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, response_text: Optional[str] = None):
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(message)


class JobNotFound(EnhancerError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__("Resume enhancement process not found")


class PermissionDenied(EnhancerError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__("Not authorized to check this resume enhancement status")


class QueueError(EnhancerError):
    """Publishing a job creation event failed"""
