"""
Backend interfaces for the assessment pipeline.
Defines the contract that every destination (Google, in-memory) must implement.
"""

from typing import Any, Dict, Protocol, Sequence

from models.layout import LayoutPlan


class AssetStore(Protocol):
    """Where uploaded sketches and photos are persisted."""

    def upload_file(
        self,
        *,
        folder_path: Sequence[str],
        file_name: str,
        data: bytes,
        mime_type: str,
        description: str = "",
    ) -> str:
        """
        Persist `data` as `file_name` under the nested `folder_path`
        (folders are created when missing, reused otherwise).

        Returns:
            A world-readable URL suitable for inline image embedding.

        Raises:
            AssetUploadError: if the store rejects or times out the upload
        """
        ...


class TargetWriter(Protocol):
    """Where layout plans are committed."""

    def check_destination(self) -> None:
        """
        Verify the destination exists and is writable before anything is
        uploaded or written.

        Raises:
            NotFound, PermissionDenied, AuthenticationExpired, DestinationError
        """
        ...

    def commit(self, plan: LayoutPlan, document_name: str) -> str:
        """
        Replace the document called `document_name` with a fresh one
        rendered from `plan`.

        Returns:
            URL of the committed document.

        Raises:
            WriteConflict: another commit for the same name is in progress
            NotFound, PermissionDenied, AuthenticationExpired, DestinationError
        """
        ...

    def check_connection(self) -> Dict[str, Any]:
        """Describe the destination (title, existing documents)."""
        ...


class AssessmentBackend(AssetStore, TargetWriter, Protocol):
    """
    Everything one submission needs from the outside world.

    Chosen once at construction time (Google for production, in-memory for
    tests and local UI work).
    """

    name: str
