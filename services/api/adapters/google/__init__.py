"""
Google backend: assets go to Drive, worksheets to one shared spreadsheet.
Built per request, so a signed-in user's token only lives as long as the request.
"""
import logging
from typing import Any, Dict, Optional, Sequence

from adapters.sheets import SheetsTargetWriter
from core.doc_lock import DocumentLeases, get_document_leases
from core.drive_client import DriveAssetStore, build_drive_service
from core.errors import AssessmentError
from core.google_credentials import load_credentials
from models.layout import LayoutPlan

logger = logging.getLogger(__name__)


class GoogleBackend:
    """
    Drive asset store + Sheets target writer behind one AssessmentBackend.
    """

    name = "google"

    def __init__(
        self,
        store: DriveAssetStore,
        writer: SheetsTargetWriter,
        *,
        sketch_folder: str = "Turnovers_Sketches",
    ):
        """
        Args:
            store: Drive asset store (uploads + folders)
            writer: Sheets writer bound to the destination spreadsheet
            sketch_folder: Top-level Drive folder probed by the connection test
        """
        self.store = store
        self.writer = writer
        self.sketch_folder = sketch_folder

    @classmethod
    def from_settings(
        cls,
        settings,
        access_token: Optional[str] = None,
        leases: Optional[DocumentLeases] = None,
    ) -> "GoogleBackend":
        """
        Build the backend from settings.

        Args:
            settings: Application settings
            access_token: Signed-in user's OAuth token; the service account is used when absent
            leases: Lease registry shared by all writers in this process
        """
        credentials = load_credentials(
            access_token=access_token,
            google_sa_json=None if access_token else settings.resolved_google_sa_json(),
        )
        service = build_drive_service(credentials, timeout_s=settings.upload_timeout_s)
        writer = SheetsTargetWriter.from_credentials(
            credentials,
            settings.sheets_spreadsheet_id,
            leases=leases or get_document_leases(settings.document_lease_ttl_s),
        )
        logger.info(
            "Google backend ready (auth=%s, spreadsheet=%s)",
            "user" if access_token else "service_account",
            settings.sheets_spreadsheet_id,
        )
        return cls(
            DriveAssetStore(service, upload_deadline_s=settings.upload_timeout_s),
            writer,
            sketch_folder=settings.gdrive_sketch_folder_name,
        )

    # ========== AssetStore ==========

    def upload_file(
        self,
        *,
        folder_path: Sequence[str],
        file_name: str,
        data: bytes,
        mime_type: str,
        description: str = "",
    ) -> str:
        return self.store.upload_file(
            folder_path=folder_path,
            file_name=file_name,
            data=data,
            mime_type=mime_type,
            description=description,
        )

    # ========== TargetWriter ==========

    def check_destination(self) -> None:
        self.writer.check_destination()

    def commit(self, plan: LayoutPlan, document_name: str) -> str:
        return self.writer.commit(plan, document_name)

    def check_connection(self) -> Dict[str, Any]:
        """Spreadsheet title + tabs, and whether the Drive folder is reachable."""
        info = self.writer.check_connection()
        try:
            self.store.check_connection(self.sketch_folder)
            info["drive"] = {"ok": True, "folder": self.sketch_folder}
        except AssessmentError as e:
            info["drive"] = {"ok": False, "folder": self.sketch_folder, "error": str(e)}
        except Exception as e:
            logger.exception("Drive connection check failed")
            info["drive"] = {"ok": False, "folder": self.sketch_folder, "error": str(e)}
        info["backend"] = self.name
        return info
