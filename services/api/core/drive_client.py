# services/api/core/drive_client.py
from __future__ import annotations
import logging
import socket
import time
from io import BytesIO
from typing import Callable, Dict, Optional, Sequence, Tuple

import httplib2
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from core.errors import AssetUploadError

logger = logging.getLogger(__name__)

FOLDER_MIME = "application/vnd.google-apps.folder"


def build_drive_service(credentials, timeout_s: float = 30.0):
    """
    Construct a Google Drive v3 client whose every HTTP request is bounded
    by `timeout_s`, so one stalled upload fails instead of hanging.
    """
    http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout_s))
    return build("drive", "v3", http=http, cache_discovery=False)


def embed_url(file_id: str) -> str:
    """URL that =IMAGE() can render (not the browser preview link)."""
    return f"https://drive.google.com/uc?export=view&id={file_id}"


def _safe_segment(value: str, fallback: str = "UNKNOWN") -> str:
    """
    Clean folder/file name segments so Drive accepts them nicely.
    """
    if not value:
        return fallback
    v = value.strip()
    if not v:
        return fallback
    # avoid slashes and crazy chars in folder names
    v = v.replace("/", "_").replace("\\", "_")
    # keep names reasonable length
    return v[:120]


def _ensure_folder(service, name: str, parent_id: Optional[str] = None) -> str:
    """
    Find (or create) a folder with given name under parent_id (or My Drive root).
    Returns the folder ID.
    """
    folder_name = name.strip() or "UNTITLED"

    # NOTE: escape single quotes once and reuse
    safe_name = folder_name.replace("'", "\\'")
    q = f"mimeType = '{FOLDER_MIME}' and name = '{safe_name}' and trashed = false"
    if parent_id:
        q += f" and '{parent_id}' in parents"

    result = service.files().list(
        q=q,
        spaces="drive",
        fields="files(id, name)",
        pageSize=1,
    ).execute()

    files = result.get("files", [])
    if files:
        return files[0]["id"]

    # Not found → create
    metadata = {"name": folder_name, "mimeType": FOLDER_MIME}
    if parent_id:
        metadata["parents"] = [parent_id]

    created = service.files().create(body=metadata, fields="id").execute()
    logger.info("Created Drive folder %r (id=%s)", folder_name, created["id"])
    return created["id"]


class DriveAssetStore:
    """
    Persists asset bytes in Google Drive.

    Folder ids are cached per instance, so a batch resolves
    Turnovers_Photos/<work order> once.

    `upload_deadline_s` bounds one `upload_file` call as a whole. It is
    checked before each Drive request; the transport timeout bounds each
    request on its own.
    """

    def __init__(
        self,
        service,
        *,
        upload_deadline_s: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.service = service
        self.upload_deadline_s = upload_deadline_s
        self._clock = clock
        self._folders: Dict[Tuple[str, ...], str] = {}

    def _check_deadline(self, started: float, file_name: str) -> None:
        if self.upload_deadline_s is None:
            return
        elapsed = self._clock() - started
        if elapsed > self.upload_deadline_s:
            raise AssetUploadError(
                f"Upload of {file_name} timed out after {elapsed:.1f}s "
                f"(limit {self.upload_deadline_s:g}s)"
            )

    def resolve_folder(self, folder_path: Sequence[str]) -> str:
        parent_id: Optional[str] = None
        prefix: Tuple[str, ...] = ()
        for segment in folder_path:
            prefix = prefix + (_safe_segment(segment, "Unassigned"),)
            if prefix not in self._folders:
                self._folders[prefix] = _ensure_folder(self.service, prefix[-1], parent_id)
            parent_id = self._folders[prefix]
        if parent_id is None:
            raise ValueError("folder_path must contain at least one segment")
        return parent_id

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
        Create the file, make it readable by anyone with the link and
        return its embeddable URL.
        """
        started = self._clock()
        try:
            folder_id = self.resolve_folder(folder_path)
            self._check_deadline(started, file_name)

            media = MediaIoBaseUpload(BytesIO(data), mimetype=mime_type, resumable=False)
            created = self.service.files().create(
                body={
                    "name": file_name,
                    "parents": [folder_id],
                    "description": description,
                },
                media_body=media,
                fields="id",
            ).execute()
            file_id = created["id"]
            self._check_deadline(started, file_name)

            # =IMAGE() fetches anonymously, so the grant is required
            self.service.permissions().create(
                fileId=file_id,
                body={"role": "reader", "type": "anyone"},
                fields="id",
            ).execute()
        except HttpError as e:
            status = getattr(e.resp, "status", "?")
            raise AssetUploadError(f"Drive rejected {file_name} (HTTP {status})") from e
        except (socket.timeout, TimeoutError) as e:
            raise AssetUploadError(f"Upload of {file_name} timed out") from e

        logger.info("Uploaded %s to Drive file_id=%s", file_name, file_id)
        return embed_url(file_id)

    def check_connection(self, folder_name: str) -> str:
        """Resolve (creating if needed) a top-level folder; used by the connection test."""
        return self.resolve_folder([folder_name])
