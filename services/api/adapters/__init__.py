"""
Backend factory.
The backend is chosen once, from ASSESSMENT_BACKEND, when a submission is handled.
"""
from typing import Optional

from adapters.base import AssessmentBackend
from core.errors import ConfigurationError

# The in-memory backend keeps its documents for the life of the process
_memory_backend = None


def create_backend(settings, access_token: Optional[str] = None) -> AssessmentBackend:
    """
    Build the configured backend.

    Args:
        settings: Application settings
        access_token: Optional OAuth token of the signed-in user (Google only)

    Raises:
        ConfigurationError: unknown backend name or missing Google configuration
    """
    global _memory_backend
    backend = (settings.assessment_backend or "").strip().lower()

    if backend == "google":
        from adapters.google import GoogleBackend
        return GoogleBackend.from_settings(settings, access_token=access_token)

    if backend == "memory":
        if _memory_backend is None:
            from adapters.memory import InMemoryBackend
            from core.doc_lock import get_document_leases
            _memory_backend = InMemoryBackend(leases=get_document_leases(settings.document_lease_ttl_s))
        return _memory_backend

    raise ConfigurationError(f"Unknown ASSESSMENT_BACKEND: {settings.assessment_backend!r}")
