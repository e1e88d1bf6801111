"""
Pydantic schemas for API request/response validation.
"""
from .assessment import (
    PhotoIn,
    PhotoUrlOut,
    RawWorkItem,
    SkippedItemOut,
    StructuredData,
    SubmissionError,
    SubmissionRequest,
    SubmissionResponse,
    UploadFailureOut,
)

__all__ = [
    "PhotoIn",
    "PhotoUrlOut",
    "RawWorkItem",
    "SkippedItemOut",
    "StructuredData",
    "SubmissionError",
    "SubmissionRequest",
    "SubmissionResponse",
    "UploadFailureOut",
]
