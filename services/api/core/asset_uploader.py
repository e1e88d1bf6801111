# services/api/core/asset_uploader.py
"""
Asset uploader: sketch / photo data URLs -> files in the asset store.

Uploads run one at a time with a short pause in between; one failure
never stops the rest of the batch.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
import time
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from adapters.base import AssetStore
from core.errors import AssessmentError, InvalidAssetFormat
from models import AssetKind, UploadedAsset

logger = logging.getLogger(__name__)

_DATA_URL = re.compile(r"^data:([^;,]+);base64,(.+)$", re.DOTALL)

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


@dataclass(frozen=True)
class AssetUpload:
    """One asset waiting to be uploaded."""
    kind: AssetKind
    data_url: str
    name: str = ""
    caption: str = ""


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    """
    Decode `data:<mime>;base64,<payload>` into (bytes, mime).

    Raises:
        InvalidAssetFormat: bad envelope, bad base64, non-image MIME type,
            or bytes that are not a readable image
    """
    if not data_url or not isinstance(data_url, str):
        raise InvalidAssetFormat("Empty image payload")

    match = _DATA_URL.match(data_url.strip())
    if not match:
        raise InvalidAssetFormat("Invalid data URL format")

    mime_type = match.group(1).strip().lower()
    if not mime_type.startswith("image/"):
        raise InvalidAssetFormat(f"Unsupported MIME type {mime_type!r}")

    try:
        data = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidAssetFormat(f"Invalid base64 payload: {e}") from e

    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidAssetFormat(f"Payload is not a readable image: {e}") from e

    return data, mime_type


def _split_name(name: str, mime_type: str) -> Tuple[str, str]:
    """('kitchen.jpeg', ...) -> ('kitchen', 'jpeg'); falls back to the MIME type."""
    base, dot, ext = (name or "").rpartition(".")
    if dot and base and ext:
        return base, ext
    return (name or "photo"), _EXTENSIONS.get(mime_type, "png")


class AssetUploader:
    def __init__(
        self,
        store: AssetStore,
        *,
        sketch_folder: str = "Turnovers_Sketches",
        photo_folder: str = "Turnovers_Photos",
        delay_s: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.sketch_folder = sketch_folder
        self.photo_folder = photo_folder
        self.delay_s = delay_s
        self._sleep = sleep

    @classmethod
    def from_settings(cls, store: AssetStore, settings) -> "AssetUploader":
        return cls(
            store,
            sketch_folder=settings.gdrive_sketch_folder_name,
            photo_folder=settings.gdrive_photo_folder_name,
            delay_s=settings.upload_delay_s,
        )

    def _file_name(self, asset: AssetUpload, destination_key: str, mime_type: str, position: int) -> str:
        if asset.kind is AssetKind.SKETCH:
            ext = _EXTENSIONS.get(mime_type, "png")
            return f"FloorPlan_{destination_key}.{ext}"
        base, ext = _split_name(asset.name, mime_type)
        return f"{destination_key}_{position:02d}_{base}.{ext}"

    def upload(self, asset: AssetUpload, destination_key: str, position: int = 1) -> UploadedAsset:
        """
        Upload one asset under <root folder>/<destination_key>.

        Raises:
            InvalidAssetFormat: payload is not a decodable image
            AssetUploadError: the store rejected or timed out the upload
        """
        data, mime_type = decode_data_url(asset.data_url)
        file_name = self._file_name(asset, destination_key, mime_type, position)
        root = self.sketch_folder if asset.kind is AssetKind.SKETCH else self.photo_folder

        url = self.store.upload_file(
            folder_path=[root, destination_key],
            file_name=file_name,
            data=data,
            mime_type=mime_type,
            description=asset.caption,
        )
        return UploadedAsset(
            kind=asset.kind,
            name=asset.name or file_name,
            file_name=file_name,
            url=url,
            caption=asset.caption,
        )

    def upload_batch(self, assets: Sequence[AssetUpload], destination_key: str) -> List[UploadedAsset]:
        """
        Upload every asset in order. The result has one entry per input;
        failures carry `error` instead of `url`.
        """
        results: List[UploadedAsset] = []
        total = len(assets)

        for i, asset in enumerate(assets):
            if i > 0 and self.delay_s > 0:
                self._sleep(self.delay_s)

            logger.info("Uploading %s %d/%d: %s", asset.kind.value, i + 1, total, asset.name)
            try:
                results.append(self.upload(asset, destination_key, position=i + 1))
            except AssessmentError as e:
                logger.warning("Failed to upload %s %r: %s", asset.kind.value, asset.name, e)
                results.append(_failed(asset, str(e)))
            except Exception as e:
                logger.exception("Unexpected error uploading %r", asset.name)
                results.append(_failed(asset, f"Unexpected upload error: {e}"))

        ok = sum(1 for r in results if r.ok)
        if total:
            logger.info("Uploads finished: %d/%d successful", ok, total)
        return results

    def upload_optional(self, asset: Optional[AssetUpload], destination_key: str) -> Optional[UploadedAsset]:
        """Single asset with batch semantics (never raises); None in, None out."""
        if asset is None:
            return None
        return self.upload_batch([asset], destination_key)[0]


def _failed(asset: AssetUpload, error: str) -> UploadedAsset:
    return UploadedAsset(
        kind=asset.kind,
        name=asset.name,
        caption=asset.caption,
        error=error,
    )
