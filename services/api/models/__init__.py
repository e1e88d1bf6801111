from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from core.validation import sanitize_sheet_name


class ProjectHeader(BaseModel):
    """
    Identifying metadata for one assessment.
    Read-only once assembly starts.
    """
    model_config = ConfigDict(frozen=True)

    work_order: str = ""
    unit_number: str = ""
    address: str = ""
    square_feet: str = ""
    layout: str = ""

    @property
    def sheet_name(self) -> str:
        """Worksheet title derived from the work order."""
        return sanitize_sheet_name(self.work_order)


class ScopeText(BaseModel):
    """English / Spanish scope of work, already stripped of markdown."""
    model_config = ConfigDict(frozen=True)

    english: str = ""
    spanish: str = ""


class WorkItem(BaseModel):
    """
    One priced line of the worksheet.

    `unit_price` and `materials_cost` come from the catalog only;
    `total` is derived and cannot be supplied.
    """
    model_config = ConfigDict(frozen=True)

    category: str
    item: str
    description: str = ""
    unit: str = ""
    quantity: float = Field(..., gt=0, allow_inf_nan=False)
    unit_price: float = Field(0.0, ge=0, allow_inf_nan=False)
    notes: str = ""
    materials_cost: bool = False
    # False when (category, item, description) had no catalog entry
    catalog_match: bool = False

    @computed_field  # type: ignore[misc]
    @property
    def total(self) -> float:
        return self.quantity * self.unit_price


class AssetKind(str, Enum):
    SKETCH = "sketch"
    PHOTO = "photo"


class UploadedAsset(BaseModel):
    """
    Outcome of persisting one asset.
    Exactly one of `url` / `error` is set.
    """
    kind: AssetKind
    name: str
    file_name: str = ""
    url: Optional[str] = None
    caption: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.url) and self.error is None
