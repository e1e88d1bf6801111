# services/api/core/assembler.py
"""
Document assembler: header, scope, sketch, line items and photos -> LayoutPlan.

Worksheet layout (1-based rows, columns A..I):

    1     WO# | <wo> (B:C)        | Unit #     | <unit> (E:I)
    2     Address | <addr> (B:C)  | Unit SQ FT | <sqft> Unit Layout: <layout> (E:I)
    3     Overview (A:D)          | Spanish (E:I)
    4     <english scope> (A:D)   | <spanish scope> (E:I)      auto-fit
    5     Unit Layout (A:I)
    6     <sketch image> (A:I)                                  15x height
    7     table header
    8..   one row per work item, category cells merged per run
    ..    TOTAL row
    ..    spacer row pushing the gallery to a fresh page   (photos only)
    ..    Photos heading, then image row + caption row per photo

Pure: no I/O, same input -> same plan.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from models import ProjectHeader, ScopeText, UploadedAsset, WorkItem
from models.layout import (
    DARK_GREY,
    LIGHT_GREY,
    MID_GREY,
    BorderDirective,
    BorderStyle,
    CellFormat,
    CellValue,
    FormatDirective,
    GridRange,
    LayoutPlan,
    Region,
    RowSize,
    row_range,
)
from core.normalizer import sort_by_category

# ---------- geometry ----------

DEFAULT_ROW_HEIGHT = 21  # Google Sheets default
HEADER_ROW_HEIGHT = DEFAULT_ROW_HEIGHT * 2
IMAGE_ROW_HEIGHT = DEFAULT_ROW_HEIGHT * 15

# Rough text metrics for the default 10pt font, used to estimate wrapped heights
AVG_CHAR_WIDTH_PX = 7
LINE_HEIGHT_PX = 17
CELL_PADDING_PX = 6

COLUMN_WIDTHS = [110, 190, 110, 50, 70, 80, 100, 100, 200]
NUM_COLS = len(COLUMN_WIDTHS)

TABLE_HEADERS = [
    "Category",
    "Item",
    "Description",
    "Unit",
    "Amount",
    "Multiplier",
    "Price Per Unit",
    "Total",
    "Notes",
]
COL_CATEGORY, COL_ITEM, COL_DESCRIPTION, COL_UNIT = 0, 1, 2, 3
COL_AMOUNT, COL_MULTIPLIER, COL_PRICE, COL_TOTAL, COL_NOTES = 4, 5, 6, 7, 8

CURRENCY_FORMAT = "$#,##0.00"
MATERIALS_CURRENCY_FORMAT = '$#,##0.00" + Materials"'

MEDIUM = BorderStyle("SOLID_MEDIUM")
LIGHT = BorderStyle("SOLID", MID_GREY)

HEADER_TOP = 0
SCOPE_TOP = 2
SKETCH_TOP = 4
TABLE_TOP = 6


@dataclass(frozen=True)
class PageGeometry:
    """Printable page height and spacer tuning, all in sheet pixels."""
    usable_height_px: int = 912
    spacer_buffer_px: int = 20
    spacer_min_px: int = 50

    @classmethod
    def from_settings(cls, settings) -> "PageGeometry":
        return cls(
            usable_height_px=settings.page_usable_height_px,
            spacer_buffer_px=settings.spacer_buffer_px,
            spacer_min_px=settings.spacer_min_px,
        )


# ---------- pure helpers ----------

def compute_spacer_height(
    content_height_px: int,
    page_height_px: int,
    buffer_px: int = 20,
    min_px: int = 50,
) -> int:
    """
    Height of the blank row that pushes the next row to the top of a new page.

        used   = content % page
        spacer = max(page - used + buffer, min)
    """
    if page_height_px <= 0:
        raise ValueError(f"page_height_px must be > 0, got {page_height_px}")
    if content_height_px < 0:
        raise ValueError(f"content_height_px must be >= 0, got {content_height_px}")

    used = content_height_px % page_height_px
    return max(page_height_px - used + buffer_px, min_px)


def category_merge_runs(categories: Sequence[str]) -> List[Tuple[int, int]]:
    """
    Index ranges [start, end) of consecutive equal categories spanning more
    than one row. Single-row runs are not merged.
    """
    runs: List[Tuple[int, int]] = []
    if not categories:
        return runs

    start = 0
    for i in range(1, len(categories) + 1):
        if i == len(categories) or categories[i] != categories[start]:
            if i - start > 1:
                runs.append((start, i))
            start = i
    return runs


def estimate_text_height(text: str, width_px: int, slack_lines: int = 0) -> int:
    """
    Estimated pixel height of wrapped `text` in a cell `width_px` wide.

    `slack_lines` extra lines are added once any paragraph fills most of a
    line. Fixed-height rows use it so uppercase text and early word breaks
    are not clipped.
    """
    if not text:
        return DEFAULT_ROW_HEIGHT

    chars_per_line = max(1, (width_px - CELL_PADDING_PX) // AVG_CHAR_WIDTH_PX)
    paragraphs = text.split("\n")
    lines = sum(max(1, math.ceil(len(p) / chars_per_line)) for p in paragraphs)
    if any(len(p) * 4 > chars_per_line * 3 for p in paragraphs):
        lines += slack_lines
    return max(DEFAULT_ROW_HEIGHT, lines * LINE_HEIGHT_PX + CELL_PADDING_PX)


def _span_width(start_col: int, end_col: int) -> int:
    return sum(COLUMN_WIDTHS[start_col:end_col])


def _fmt(rng: GridRange, **kwargs) -> FormatDirective:
    return FormatDirective(rng, CellFormat(**kwargs))


def _text(row: int, col: int, value) -> CellValue:
    return CellValue(row, col, "" if value is None else str(value), "text")


def _number(row: int, col: int, value: float) -> CellValue:
    return CellValue(row, col, value, "number")


# ---------- regions ----------

def _header_region(header: ProjectHeader) -> Region:
    r0, r1 = HEADER_TOP, HEADER_TOP + 1
    region = Region("header", row_range(r0, r0 + 2), height_px=HEADER_ROW_HEIGHT * 2)
    region.row_sizes.append(RowSize(r0, r0 + 2, pixel_size=HEADER_ROW_HEIGHT))

    for row in (r0, r1):
        region.merges.append(GridRange(row, row + 1, 1, 3))
        region.merges.append(GridRange(row, row + 1, 4, NUM_COLS))

    layout_cell = f"{header.square_feet}          Unit Layout: {header.layout}"
    region.values += [
        _text(r0, 0, "WO#"),
        _text(r0, 1, header.work_order),
        _text(r0, 3, "Unit #"),
        _text(r0, 4, header.unit_number),
        _text(r1, 0, "Address"),
        _text(r1, 1, header.address),
        _text(r1, 3, "Unit SQ FT"),
        _text(r1, 4, layout_cell),
    ]
    region.formats += [
        _fmt(GridRange(r0, r0 + 2, 0, 1), bold=True),
        _fmt(GridRange(r0, r0 + 2, 3, 4), bold=True),
        _fmt(row_range(r0, r0 + 2), vertical="MIDDLE"),
    ]
    return region


def _scope_region(scope: ScopeText) -> Region:
    label_row, text_row = SCOPE_TOP, SCOPE_TOP + 1
    text_height = max(
        estimate_text_height(scope.english, _span_width(0, 4)),
        estimate_text_height(scope.spanish, _span_width(4, NUM_COLS)),
    )
    region = Region(
        "scope",
        row_range(label_row, text_row + 1),
        height_px=DEFAULT_ROW_HEIGHT + text_height,
    )
    region.row_sizes += [
        RowSize(label_row, label_row + 1, pixel_size=DEFAULT_ROW_HEIGHT),
        # grows with the description; the writer asks Sheets to fit it
        RowSize(text_row, text_row + 1, auto_fit=True),
    ]
    for row in (label_row, text_row):
        region.merges.append(GridRange(row, row + 1, 0, 4))
        region.merges.append(GridRange(row, row + 1, 4, NUM_COLS))

    region.values += [
        _text(label_row, 0, "Overview"),
        _text(label_row, 4, "Spanish"),
        _text(text_row, 0, scope.english),
        _text(text_row, 4, scope.spanish),
    ]
    region.formats += [
        _fmt(row_range(label_row, label_row + 1), bold=True, horizontal="CENTER"),
        _fmt(row_range(text_row, text_row + 1), wrap=True, vertical="TOP"),
    ]
    return region


def _sketch_region(sketch: Optional[UploadedAsset]) -> Region:
    label_row, image_row = SKETCH_TOP, SKETCH_TOP + 1
    region = Region(
        "sketch",
        row_range(label_row, image_row + 1),
        height_px=DEFAULT_ROW_HEIGHT + IMAGE_ROW_HEIGHT,
    )
    region.row_sizes += [
        RowSize(label_row, label_row + 1, pixel_size=DEFAULT_ROW_HEIGHT),
        RowSize(image_row, image_row + 1, pixel_size=IMAGE_ROW_HEIGHT),
    ]
    region.merges += [row_range(label_row, label_row + 1), row_range(image_row, image_row + 1)]
    region.values.append(_text(label_row, 0, "Unit Layout"))
    if sketch is not None and sketch.ok:
        region.values.append(CellValue(image_row, 0, sketch.url, "image"))

    region.formats += [
        _fmt(
            row_range(label_row, label_row + 1),
            bold=True,
            font_size=12,
            horizontal="CENTER",
            vertical="MIDDLE",
            background=LIGHT_GREY,
        ),
        _fmt(row_range(image_row, image_row + 1), horizontal="CENTER", vertical="MIDDLE"),
    ]
    return region


def _item_row_height(item: WorkItem, merged_category: bool) -> int:
    cells = [
        (COL_ITEM, item.item),
        (COL_DESCRIPTION, item.description),
        (COL_UNIT, item.unit),
        (COL_NOTES, item.notes),
    ]
    if not merged_category:
        cells.append((COL_CATEGORY, item.category))
    return max(estimate_text_height(text, COLUMN_WIDTHS[col], slack_lines=1) for col, text in cells)


def _items_region(items: Sequence[WorkItem]) -> Region:
    header_row = TABLE_TOP
    first_data = header_row + 1
    total_row = first_data + len(items)
    n = len(items)

    runs = category_merge_runs([i.category for i in items])
    in_run = set()
    for start, end in runs:
        in_run.update(range(start, end))

    region = Region("items", row_range(header_row, total_row + 1))
    grand_total = sum(i.total for i in items)

    # sizes
    region.row_sizes.append(RowSize(header_row, header_row + 1, pixel_size=DEFAULT_ROW_HEIGHT))
    height = DEFAULT_ROW_HEIGHT
    for idx, item in enumerate(items):
        h = _item_row_height(item, idx in in_run)
        region.row_sizes.append(RowSize(first_data + idx, first_data + idx + 1, pixel_size=h))
        height += h
    region.row_sizes.append(RowSize(total_row, total_row + 1, pixel_size=DEFAULT_ROW_HEIGHT))
    height += DEFAULT_ROW_HEIGHT
    region.height_px = height

    # merges
    for start, end in runs:
        region.merges.append(
            GridRange(first_data + start, first_data + end, COL_CATEGORY, COL_CATEGORY + 1)
        )

    # values
    for col, title in enumerate(TABLE_HEADERS):
        region.values.append(_text(header_row, col, title))

    for idx, item in enumerate(items):
        row = first_data + idx
        region.values += [
            _text(row, COL_CATEGORY, item.category),
            _text(row, COL_ITEM, item.item),
            _text(row, COL_DESCRIPTION, item.description),
            _text(row, COL_UNIT, item.unit),
            _number(row, COL_AMOUNT, item.quantity),
            _number(row, COL_MULTIPLIER, 1),
            _number(row, COL_PRICE, item.unit_price),
            _number(row, COL_TOTAL, item.total),
            _text(row, COL_NOTES, item.notes),
        ]
    region.values += [
        _text(total_row, COL_PRICE, "TOTAL:"),
        _number(total_row, COL_TOTAL, grand_total),
    ]

    # formats
    table = row_range(header_row, total_row + 1)
    region.formats.append(
        _fmt(
            row_range(header_row, header_row + 1),
            bold=True,
            background=LIGHT_GREY,
            vertical="MIDDLE",
            horizontal="CENTER",
        )
    )
    region.formats.append(_fmt(row_range(total_row, total_row + 1), bold=True, background=DARK_GREY))
    if n:
        data = row_range(first_data, total_row)
        region.formats += [
            _fmt(data, wrap=True, vertical="TOP"),
            _fmt(GridRange(first_data, total_row, COL_CATEGORY, COL_CATEGORY + 1), vertical="MIDDLE"),
            _fmt(GridRange(first_data, total_row, COL_PRICE, COL_PRICE + 1), number_format=CURRENCY_FORMAT),
        ]
        for idx, item in enumerate(items):
            if item.materials_cost:
                row = first_data + idx
                region.formats.append(
                    _fmt(GridRange(row, row + 1, COL_PRICE, COL_PRICE + 1), number_format=MATERIALS_CURRENCY_FORMAT)
                )
    region.formats.append(
        _fmt(GridRange(first_data, total_row + 1, COL_TOTAL, COL_TOTAL + 1), number_format=CURRENCY_FORMAT)
    )

    # borders
    region.borders += [
        BorderDirective(table, top=MEDIUM, bottom=MEDIUM, left=MEDIUM, right=MEDIUM),
        BorderDirective(row_range(header_row, header_row + 1), bottom=MEDIUM),
        BorderDirective(row_range(total_row, total_row + 1), top=MEDIUM),
    ]
    if n:
        region.borders.append(
            BorderDirective(row_range(first_data, total_row), inner_horizontal=LIGHT, inner_vertical=LIGHT)
        )
    return region


def _spacer_region(row: int, content_height_px: int, page: PageGeometry) -> Region:
    height = compute_spacer_height(
        content_height_px,
        page.usable_height_px,
        page.spacer_buffer_px,
        page.spacer_min_px,
    )
    region = Region("spacer", row_range(row, row + 1), height_px=height)
    region.row_sizes.append(RowSize(row, row + 1, pixel_size=height))
    return region


def _gallery_region(top: int, photos: Sequence[UploadedAsset]) -> Region:
    region = Region("gallery", row_range(top, top + 1 + 2 * len(photos)))
    full_width = _span_width(0, NUM_COLS)

    region.row_sizes.append(RowSize(top, top + 1, pixel_size=DEFAULT_ROW_HEIGHT))
    region.merges.append(row_range(top, top + 1))
    region.values.append(_text(top, 0, "Photos"))
    region.formats.append(
        _fmt(
            row_range(top, top + 1),
            bold=True,
            font_size=12,
            horizontal="CENTER",
            vertical="MIDDLE",
            background=LIGHT_GREY,
        )
    )
    height = DEFAULT_ROW_HEIGHT

    for number, photo in enumerate(photos, start=1):
        image_row = top + 1 + 2 * (number - 1)
        caption_row = image_row + 1
        caption = f"Photo {number}: {photo.caption}" if photo.caption else f"Photo {number}"
        caption_height = estimate_text_height(caption, full_width)

        region.row_sizes += [
            RowSize(image_row, image_row + 1, pixel_size=IMAGE_ROW_HEIGHT),
            RowSize(caption_row, caption_row + 1, pixel_size=caption_height),
        ]
        region.merges += [row_range(image_row, image_row + 1), row_range(caption_row, caption_row + 1)]
        region.values += [
            CellValue(image_row, 0, photo.url, "image"),
            _text(caption_row, 0, caption),
        ]
        region.formats += [
            _fmt(row_range(image_row, image_row + 1), horizontal="CENTER", vertical="MIDDLE"),
            _fmt(row_range(caption_row, caption_row + 1), wrap=True, horizontal="CENTER", vertical="TOP"),
        ]
        height += IMAGE_ROW_HEIGHT + caption_height

    region.height_px = height
    return region


def assemble(
    header: ProjectHeader,
    scope: ScopeText,
    sketch: Optional[UploadedAsset],
    items: Sequence[WorkItem],
    photos: Sequence[UploadedAsset],
    *,
    page: Optional[PageGeometry] = None,
) -> LayoutPlan:
    """
    Lay out one assessment worksheet.

    Failed photo uploads are left out and the rest are numbered 1..n.
    With no successful photo the plan ends at the TOTAL row.
    """
    page = page or PageGeometry()
    sorted_items = sort_by_category(items)

    regions = [
        _header_region(header),
        _scope_region(scope),
        _sketch_region(sketch),
        _items_region(sorted_items),
    ]

    good_photos = [p for p in photos if p.ok]
    if good_photos:
        content_height = sum(r.height_px for r in regions)
        spacer_row = regions[-1].rows.end_row
        regions.append(_spacer_region(spacer_row, content_height, page))
        regions.append(_gallery_region(spacer_row + 1, good_photos))

    return LayoutPlan(
        regions=regions,
        column_widths=list(COLUMN_WIDTHS),
        grand_total=sum(i.total for i in sorted_items),
    )
