"""
In-memory backend for tests and local UI work.
Nothing leaves the process: uploads are kept as bytes, committed plans are
rendered into a dict-of-cells grid per document name.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from core.doc_lock import DocumentLeases
from core.errors import AssetUploadError, AssessmentError
from models.layout import GridRange, LayoutPlan

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    folder_path: Tuple[str, ...]
    file_name: str
    data: bytes
    mime_type: str
    description: str
    url: str


@dataclass
class MemoryDocument:
    """One committed worksheet, rendered the way a reader would see it."""
    name: str
    gid: int
    plan: LayoutPlan
    cells: Dict[Tuple[int, int], Any] = field(default_factory=dict)
    merges: List[GridRange] = field(default_factory=list)
    row_heights: Dict[int, Optional[int]] = field(default_factory=dict)

    def cell(self, row: int, col: int) -> Any:
        return self.cells.get((row, col))

    def row(self, row: int) -> List[Any]:
        return [self.cells.get((row, col)) for col in range(self.plan.column_count)]

    def snapshot(self) -> Dict[str, Any]:
        """Content + layout without identity, for comparing two commits."""
        return {
            "cells": dict(self.cells),
            "merges": list(self.merges),
            "row_heights": dict(self.row_heights),
        }


def render_plan(plan: LayoutPlan) -> Tuple[Dict[Tuple[int, int], Any], List[GridRange], Dict[int, Optional[int]]]:
    """Flatten a plan into (cells, merges, row heights); auto-fit rows map to None."""
    cells: Dict[Tuple[int, int], Any] = {}
    for value in plan.values():
        if value.kind == "image":
            cells[(value.row, value.col)] = f"<image {value.value}>"
        else:
            cells[(value.row, value.col)] = value.value

    heights: Dict[int, Optional[int]] = {}
    for size in plan.row_sizes():
        for row in range(size.start_row, size.end_row):
            heights[row] = None if size.auto_fit else size.pixel_size

    return cells, list(plan.merges()), heights


class InMemoryBackend:
    """
    AssessmentBackend test double.

    Forced failures:
      - `fail_uploads`: any upload whose file name contains one of these
        strings raises AssetUploadError
      - `destination_error`: raised from check_destination / commit
    """

    name = "memory"

    def __init__(
        self,
        *,
        fail_uploads: Iterable[str] = (),
        destination_error: Optional[AssessmentError] = None,
        leases: Optional[DocumentLeases] = None,
        title: str = "In-memory worksheets",
    ):
        self.fail_uploads = set(fail_uploads)
        self.destination_error = destination_error
        self.leases = leases or DocumentLeases()
        self.title = title

        self.files: List[StoredFile] = []
        self.documents: Dict[str, MemoryDocument] = {}
        self.commit_count = 0
        self._next_gid = 1
        self._mutex = threading.Lock()

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
        if any(token in file_name for token in self.fail_uploads):
            raise AssetUploadError(f"Forced upload failure for {file_name}")

        # same path + name -> same URL, so resubmissions render identically
        url = "memory://files/" + "/".join(list(folder_path) + [file_name])
        with self._mutex:
            self.files.append(
                StoredFile(tuple(folder_path), file_name, data, mime_type, description, url)
            )
        logger.info("Stored %s (%d bytes) in memory", file_name, len(data))
        return url

    # ========== TargetWriter ==========

    def check_destination(self) -> None:
        if self.destination_error is not None:
            raise self.destination_error

    def commit(self, plan: LayoutPlan, document_name: str) -> str:
        with self.leases.hold(document_name):
            self.check_destination()
            cells, merges, heights = render_plan(plan)
            with self._mutex:
                if self.documents.pop(document_name, None) is not None:
                    logger.info("Deleted existing in-memory sheet %r", document_name)
                gid = self._next_gid
                self._next_gid += 1
                self.documents[document_name] = MemoryDocument(
                    name=document_name,
                    gid=gid,
                    plan=plan,
                    cells=cells,
                    merges=merges,
                    row_heights=heights,
                )
                self.commit_count += 1
        return f"memory://sheets/{document_name}#gid={gid}"

    def check_connection(self) -> Dict[str, Any]:
        self.check_destination()
        return {
            "backend": self.name,
            "spreadsheetTitle": self.title,
            "sheets": sorted(self.documents),
            "drive": {"ok": True, "files": len(self.files)},
        }
