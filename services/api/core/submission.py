# services/api/core/submission.py
"""
One assessment submission, end to end:

    validate -> check destination -> upload sketch + photos
             -> normalize items -> assemble plan -> commit

Catastrophic failures raise AssessmentError subclasses before anything is
written; per-asset failures are recorded and the submission carries on.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from adapters.base import AssessmentBackend
from core.assembler import PageGeometry, assemble
from core.asset_uploader import AssetUpload, AssetUploader
from core.normalizer import normalize_work_items
from core.validation import require_text, require_work_items
from models import AssetKind, UploadedAsset, WorkItem
from schemas.assessment import (
    PhotoUrlOut,
    SkippedItemOut,
    SubmissionRequest,
    SubmissionResponse,
    UploadFailureOut,
)

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    document_url: str
    sheet_name: str
    sketch: Optional[UploadedAsset] = None
    photos: List[UploadedAsset] = field(default_factory=list)
    items: List[WorkItem] = field(default_factory=list)
    skipped: List[Tuple[int, str]] = field(default_factory=list)
    grand_total: float = 0.0
    success: bool = True

    @property
    def failed_uploads(self) -> List[UploadedAsset]:
        assets = ([self.sketch] if self.sketch else []) + self.photos
        return [a for a in assets if not a.ok]

    @property
    def unpriced(self) -> List[WorkItem]:
        return [i for i in self.items if not i.catalog_match]

    def to_response(self) -> SubmissionResponse:
        return SubmissionResponse(
            success=self.success,
            document_url=self.document_url,
            sheet_name=self.sheet_name,
            sketch_url=self.sketch.url if self.sketch and self.sketch.ok else None,
            photo_urls=[
                PhotoUrlOut(url=p.url, file_name=p.file_name, caption=p.caption)
                for p in self.photos
                if p.ok
            ],
            failed_uploads=[
                UploadFailureOut(name=a.name, error=a.error or "upload failed")
                for a in self.failed_uploads
            ],
            unpriced_items=[f"{i.category} / {i.item}" for i in self.unpriced],
            skipped_items=[SkippedItemOut(index=idx, reason=reason) for idx, reason in self.skipped],
            grand_total=self.grand_total,
        )


class AssessmentSubmitter:
    def __init__(self, backend: AssessmentBackend, settings, uploader: Optional[AssetUploader] = None):
        self.backend = backend
        self.settings = settings
        self.uploader = uploader or AssetUploader.from_settings(backend, settings)
        self.page = PageGeometry.from_settings(settings)

    @staticmethod
    def validate(submission: SubmissionRequest) -> None:
        """
        Raises:
            InvalidSubmission: naming the first missing field
        """
        require_work_items(submission.structured_data.work_items)
        require_text(submission.english_scope, "englishScope")
        require_text(submission.spanish_scope, "spanishScope")

    def submit(self, submission: SubmissionRequest) -> SubmissionResult:
        started = time.perf_counter()
        self.validate(submission)

        header = submission.structured_data.to_header()
        scope = submission.to_scope()
        # computed once: an empty work order falls back to a timestamp name
        sheet_name = header.sheet_name
        logger.info(
            "Submitting assessment %r via %s backend (%d items, %d photos, sketch=%s)",
            sheet_name,
            getattr(self.backend, "name", "?"),
            len(submission.structured_data.work_items),
            len(submission.photos),
            bool(submission.sketch),
        )

        self.backend.check_destination()

        sketch = self.uploader.upload_optional(
            AssetUpload(AssetKind.SKETCH, submission.sketch, name="sketch")
            if submission.sketch
            else None,
            sheet_name,
        )
        photos = self.uploader.upload_batch(
            [AssetUpload(AssetKind.PHOTO, p.url, name=p.name, caption=p.caption) for p in submission.photos],
            sheet_name,
        )

        normalized = normalize_work_items(submission.structured_data.work_items)
        plan = assemble(header, scope, sketch, normalized.items, photos, page=self.page)
        document_url = self.backend.commit(plan, sheet_name)

        result = SubmissionResult(
            document_url=document_url,
            sheet_name=sheet_name,
            sketch=sketch,
            photos=photos,
            items=normalized.items,
            skipped=normalized.skipped,
            grand_total=plan.grand_total,
        )
        logger.info(
            "Assessment %r written in %.0fms (total=%.2f, failed uploads=%d, unpriced=%d)",
            sheet_name,
            (time.perf_counter() - started) * 1000,
            result.grand_total,
            len(result.failed_uploads),
            len(result.unpriced),
        )
        return result
