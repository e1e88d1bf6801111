"""
Pydantic schemas for assessment submission.

The inbound payload is produced by the conversation UI and uses camelCase keys.
"""
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.markdown import strip_markdown
from core.validation import safe_string
from models import ProjectHeader, ScopeText


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class RawWorkItem(_CamelModel):
    """
    One work item as extracted by the conversation.

    Prices and totals sent by the client are ignored; only catalog prices count.
    """
    category: str = ""
    item: str = ""
    description: str = ""
    unit: str = ""
    quantity: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("quantity", "multiplier", "amount"),
        description="Amount of work in `unit`s",
    )
    notes: str = ""

    @field_validator("category", "item", "description", "unit", "notes", mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return safe_string(v).strip()

    @field_validator("quantity", mode="before")
    @classmethod
    def _blank_quantity(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class StructuredData(_CamelModel):
    """Header fields + raw work items."""
    work_order_number: str = ""
    unit_number: str = ""
    address: str = ""
    unit_square_feet: str = ""
    unit_layout: str = ""
    work_items: List[RawWorkItem] = Field(default_factory=list)

    @field_validator(
        "work_order_number", "unit_number", "address", "unit_square_feet", "unit_layout",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v):
        return safe_string(v).strip()

    def to_header(self) -> ProjectHeader:
        return ProjectHeader(
            work_order=self.work_order_number,
            unit_number=self.unit_number,
            address=self.address,
            square_feet=self.unit_square_feet,
            layout=self.unit_layout,
        )


class PhotoIn(_CamelModel):
    """A photo as a base64 data URL plus its caption."""
    url: str = Field(..., description="data:image/...;base64,... payload")
    name: str = "photo.jpg"
    caption: str = ""


class SubmissionRequest(_CamelModel):
    """POST /assessments/submit body."""
    structured_data: StructuredData
    english_scope: Optional[str] = None
    spanish_scope: Optional[str] = None
    sketch: Optional[str] = Field(None, description="Sketch as a base64 data URL")
    photos: List[PhotoIn] = Field(default_factory=list)

    def to_scope(self) -> ScopeText:
        return ScopeText(
            english=strip_markdown(self.english_scope),
            spanish=strip_markdown(self.spanish_scope),
        )


class PhotoUrlOut(_CamelModel):
    url: str
    file_name: str
    caption: str = ""


class UploadFailureOut(_CamelModel):
    name: str
    error: str


class SkippedItemOut(_CamelModel):
    index: int
    reason: str


class SubmissionResponse(_CamelModel):
    """Successful (possibly partial) submission."""
    success: bool = True
    document_url: str
    sheet_name: str
    sketch_url: Optional[str] = None
    photo_urls: List[PhotoUrlOut] = Field(default_factory=list)
    failed_uploads: List[UploadFailureOut] = Field(default_factory=list)
    # Items priced at $0 because the catalog had no entry; need office review
    unpriced_items: List[str] = Field(default_factory=list)
    skipped_items: List[SkippedItemOut] = Field(default_factory=list)
    grand_total: float = 0.0


class SubmissionError(_CamelModel):
    success: bool = False
    error: str
    code: str
