# services/api/models/layout.py
"""
Descriptive layout plan for one worksheet.

The plan only says WHAT goes WHERE (0-based, end-exclusive grid ranges);
translating it into API calls is the writer's job.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

Color = Tuple[float, float, float]

BLACK: Color = (0.0, 0.0, 0.0)
LIGHT_GREY: Color = (0.9, 0.9, 0.9)
MID_GREY: Color = (0.8, 0.8, 0.8)
DARK_GREY: Color = (0.7, 0.7, 0.7)


@dataclass(frozen=True)
class GridRange:
    start_row: int
    end_row: int
    start_col: int
    end_col: int

    def __post_init__(self) -> None:
        if self.start_row < 0 or self.start_col < 0:
            raise ValueError(f"Negative grid index in {self}")
        if self.end_row <= self.start_row or self.end_col <= self.start_col:
            raise ValueError(f"Empty grid range {self}")


def row_range(start_row: int, end_row: int, start_col: int = 0, end_col: int = 9) -> GridRange:
    return GridRange(start_row, end_row, start_col, end_col)


@dataclass(frozen=True)
class RowSize:
    """Fixed pixel height for rows [start_row, end_row), or auto-fit to content."""
    start_row: int
    end_row: int
    pixel_size: Optional[int] = None
    auto_fit: bool = False


@dataclass(frozen=True)
class CellValue:
    """
    Content of one (anchor) cell.

    kind:
      - "text":   literal string
      - "number": numeric value (formatting comes from a FormatDirective)
      - "image":  URL of an uploaded image, embedded by the writer
    """
    row: int
    col: int
    value: Union[str, float, int]
    kind: str = "text"


@dataclass(frozen=True)
class CellFormat:
    bold: Optional[bool] = None
    font_size: Optional[int] = None
    background: Optional[Color] = None
    horizontal: Optional[str] = None   # LEFT | CENTER | RIGHT
    vertical: Optional[str] = None     # TOP | MIDDLE | BOTTOM
    wrap: Optional[bool] = None
    number_format: Optional[str] = None  # e.g. $#,##0.00


@dataclass(frozen=True)
class FormatDirective:
    range: GridRange
    format: CellFormat


@dataclass(frozen=True)
class BorderStyle:
    style: str = "SOLID"
    color: Color = BLACK


@dataclass(frozen=True)
class BorderDirective:
    range: GridRange
    top: Optional[BorderStyle] = None
    bottom: Optional[BorderStyle] = None
    left: Optional[BorderStyle] = None
    right: Optional[BorderStyle] = None
    inner_horizontal: Optional[BorderStyle] = None
    inner_vertical: Optional[BorderStyle] = None


@dataclass
class Region:
    """A contiguous block of rows with everything needed to render it."""
    name: str
    rows: GridRange
    row_sizes: List[RowSize] = field(default_factory=list)
    merges: List[GridRange] = field(default_factory=list)
    values: List[CellValue] = field(default_factory=list)
    formats: List[FormatDirective] = field(default_factory=list)
    borders: List[BorderDirective] = field(default_factory=list)
    # Pixel height of the region as emitted (auto-fit rows are estimated)
    height_px: int = 0


@dataclass
class LayoutPlan:
    regions: List[Region]
    column_widths: List[int]
    grand_total: float = 0.0

    @property
    def column_count(self) -> int:
        return len(self.column_widths)

    @property
    def row_count(self) -> int:
        if not self.regions:
            return 0
        return max(r.rows.end_row for r in self.regions)

    def region(self, name: str) -> Optional[Region]:
        for r in self.regions:
            if r.name == name:
                return r
        return None

    def region_names(self) -> List[str]:
        return [r.name for r in self.regions]

    # ---- flattened views used by writers ----

    def row_sizes(self) -> Iterator[RowSize]:
        for r in self.regions:
            yield from r.row_sizes

    def merges(self) -> Iterator[GridRange]:
        for r in self.regions:
            yield from r.merges

    def values(self) -> Iterator[CellValue]:
        for r in self.regions:
            yield from r.values

    def formats(self) -> Iterator[FormatDirective]:
        for r in self.regions:
            yield from r.formats

    def borders(self) -> Iterator[BorderDirective]:
        for r in self.regions:
            yield from r.borders
