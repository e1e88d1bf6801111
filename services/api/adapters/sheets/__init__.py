# services/api/adapters/sheets/__init__.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import gspread
from gspread.utils import rowcol_to_a1
from google.auth.exceptions import RefreshError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from core.doc_lock import DocumentLeases, get_document_leases
from core.errors import (
    AuthenticationExpired,
    ConfigurationError,
    DestinationError,
    NotFound,
    PermissionDenied,
)
from models.layout import (
    BorderDirective,
    BorderStyle,
    CellFormat,
    CellValue,
    Color,
    GridRange,
    LayoutPlan,
)

logger = logging.getLogger(__name__)

# New tabs get at least this many rows so people can keep typing below the table
MIN_SHEET_ROWS = 200
RETRYABLE_STATUS = {429, 500, 502, 503, 504}
FORMULA_PREFIXES = ("=", "+", "-", "@")


# ========== Plan -> Sheets API request translation ==========

def _grid(rng: GridRange, sheet_id: int) -> Dict[str, int]:
    return {
        "sheetId": sheet_id,
        "startRowIndex": rng.start_row,
        "endRowIndex": rng.end_row,
        "startColumnIndex": rng.start_col,
        "endColumnIndex": rng.end_col,
    }


def _color(c: Color) -> Dict[str, float]:
    return {"red": c[0], "green": c[1], "blue": c[2]}


def _border(b: BorderStyle) -> Dict[str, Any]:
    return {"style": b.style, "color": _color(b.color)}


def _user_entered_format(fmt: CellFormat) -> tuple[Dict[str, Any], List[str]]:
    """Translate a CellFormat into (userEnteredFormat, field mask paths)."""
    body: Dict[str, Any] = {}
    fields: List[str] = []

    text_format: Dict[str, Any] = {}
    if fmt.bold is not None:
        text_format["bold"] = fmt.bold
        fields.append("textFormat.bold")
    if fmt.font_size is not None:
        text_format["fontSize"] = fmt.font_size
        fields.append("textFormat.fontSize")
    if text_format:
        body["textFormat"] = text_format

    if fmt.background is not None:
        body["backgroundColor"] = _color(fmt.background)
        fields.append("backgroundColor")
    if fmt.horizontal is not None:
        body["horizontalAlignment"] = fmt.horizontal
        fields.append("horizontalAlignment")
    if fmt.vertical is not None:
        body["verticalAlignment"] = fmt.vertical
        fields.append("verticalAlignment")
    if fmt.wrap is not None:
        body["wrapStrategy"] = "WRAP" if fmt.wrap else "OVERFLOW_CELL"
        fields.append("wrapStrategy")
    if fmt.number_format is not None:
        body["numberFormat"] = {"type": "CURRENCY", "pattern": fmt.number_format}
        fields.append("numberFormat")

    return body, fields


def structure_requests(plan: LayoutPlan, sheet_id: int) -> List[Dict[str, Any]]:
    """Column widths, fixed row heights and merges: everything values depend on."""
    requests: List[Dict[str, Any]] = []

    for col, width in enumerate(plan.column_widths):
        requests.append({
            "updateDimensionProperties": {
                "range": {"sheetId": sheet_id, "dimension": "COLUMNS", "startIndex": col, "endIndex": col + 1},
                "properties": {"pixelSize": width},
                "fields": "pixelSize",
            }
        })

    for size in plan.row_sizes():
        if size.auto_fit or size.pixel_size is None:
            continue
        requests.append({
            "updateDimensionProperties": {
                "range": {
                    "sheetId": sheet_id,
                    "dimension": "ROWS",
                    "startIndex": size.start_row,
                    "endIndex": size.end_row,
                },
                "properties": {"pixelSize": size.pixel_size},
                "fields": "pixelSize",
            }
        })

    for rng in plan.merges():
        requests.append({"mergeCells": {"range": _grid(rng, sheet_id), "mergeType": "MERGE_ALL"}})

    return requests


def image_formula(url: str) -> str:
    return f'=IMAGE("{url.replace(chr(34), chr(34) * 2)}", 1)'


def _cell_input(cell: CellValue) -> Any:
    if cell.kind == "image":
        return image_formula(str(cell.value))
    if cell.kind == "number":
        return cell.value
    text = str(cell.value)
    # USER_ENTERED parses text starting with these as a formula; a leading quote keeps it literal
    if text.startswith(FORMULA_PREFIXES):
        return "'" + text
    return text


def value_data(plan: LayoutPlan, sheet_name: str) -> List[Dict[str, Any]]:
    """`values.batchUpdate` data entries, one per anchor cell."""
    title = sheet_name.replace("'", "''")
    data = []
    for cell in plan.values():
        a1 = rowcol_to_a1(cell.row + 1, cell.col + 1)
        data.append({"range": f"'{title}'!{a1}", "values": [[_cell_input(cell)]]})
    return data


def _border_request(b: BorderDirective, sheet_id: int) -> Dict[str, Any]:
    body: Dict[str, Any] = {"range": _grid(b.range, sheet_id)}
    for side, api_name in (
        ("top", "top"),
        ("bottom", "bottom"),
        ("left", "left"),
        ("right", "right"),
        ("inner_horizontal", "innerHorizontal"),
        ("inner_vertical", "innerVertical"),
    ):
        style: Optional[BorderStyle] = getattr(b, side)
        if style is not None:
            body[api_name] = _border(style)
    return {"updateBorders": body}


def format_requests(plan: LayoutPlan, sheet_id: int) -> List[Dict[str, Any]]:
    """Cell formats, borders, then auto-fit of content-sized rows."""
    requests: List[Dict[str, Any]] = []

    for directive in plan.formats():
        body, fields = _user_entered_format(directive.format)
        if not fields:
            continue
        requests.append({
            "repeatCell": {
                "range": _grid(directive.range, sheet_id),
                "cell": {"userEnteredFormat": body},
                "fields": "userEnteredFormat(" + ",".join(fields) + ")",
            }
        })

    for border in plan.borders():
        requests.append(_border_request(border, sheet_id))

    # after wrap is set, otherwise Sheets fits the unwrapped single line
    for size in plan.row_sizes():
        if size.auto_fit:
            requests.append({
                "autoResizeDimensions": {
                    "dimensions": {
                        "sheetId": sheet_id,
                        "dimension": "ROWS",
                        "startIndex": size.start_row,
                        "endIndex": size.end_row,
                    }
                }
            })
    return requests


# ========== Error handling ==========

def _api_status(e: gspread.exceptions.APIError) -> Optional[int]:
    code = getattr(e, "code", None)
    if isinstance(code, int):
        return code
    response = getattr(e, "response", None)
    return getattr(response, "status_code", None)


def _is_retryable(e: BaseException) -> bool:
    return isinstance(e, gspread.exceptions.APIError) and _api_status(e) in RETRYABLE_STATUS


# ========== Retry decorator for Google Sheets API calls ==========
def retry_sheets_api(func):
    """Retry Sheets API calls with exponential backoff on quota / server errors."""
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


@contextmanager
def translate_sheets_errors(spreadsheet_id: str) -> Iterator[None]:
    """Map gspread / google-auth failures onto the assessment error taxonomy."""
    try:
        yield
    except gspread.exceptions.SpreadsheetNotFound as e:
        raise NotFound(
            f"Spreadsheet {spreadsheet_id} not found. Check that SHEETS_SPREADSHEET_ID is correct."
        ) from e
    except RefreshError as e:
        raise AuthenticationExpired("Authentication expired. Please sign out and sign in again.") from e
    except gspread.exceptions.APIError as e:
        status = _api_status(e)
        if status == 401:
            raise AuthenticationExpired("Authentication expired. Please sign out and sign in again.") from e
        if status == 403:
            raise PermissionDenied(
                "Permission denied. Make sure you have Editor access to the spreadsheet."
            ) from e
        if status == 404:
            raise NotFound(
                f"Spreadsheet {spreadsheet_id} not found. Check that SHEETS_SPREADSHEET_ID is correct."
            ) from e
        raise DestinationError(f"Failed to write to sheet: {e}") from e


class SheetsTargetWriter:
    """
    Commits layout plans as tabs of one shared spreadsheet.

    Each commit replaces the tab with the same name, then issues three
    batched calls: structure, values, formatting.
    """

    def __init__(
        self,
        client: gspread.Client,
        spreadsheet_id: Optional[str],
        *,
        leases: Optional[DocumentLeases] = None,
    ) -> None:
        if not spreadsheet_id:
            raise ConfigurationError("Missing SHEETS_SPREADSHEET_ID")

        self.gc = client
        self.spreadsheet_id = spreadsheet_id
        self.leases = leases or get_document_leases()
        self._ss: Optional[gspread.Spreadsheet] = None

    @classmethod
    def from_credentials(cls, credentials, spreadsheet_id: Optional[str], **kwargs) -> "SheetsTargetWriter":
        return cls(gspread.authorize(credentials), spreadsheet_id, **kwargs)

    # ========== Spreadsheet helpers ==========

    @retry_sheets_api
    def _open(self) -> gspread.Spreadsheet:
        return self.gc.open_by_key(self.spreadsheet_id)

    def _spreadsheet(self) -> gspread.Spreadsheet:
        if self._ss is None:
            self._ss = self._open()
        return self._ss

    @retry_sheets_api
    def _delete_existing(self, ss: gspread.Spreadsheet, title: str) -> bool:
        try:
            ws = ss.worksheet(title)
        except gspread.WorksheetNotFound:
            return False
        ss.del_worksheet(ws)
        logger.info("Deleted existing sheet %r (id=%s)", title, ws.id)
        return True

    @retry_sheets_api
    def _add_worksheet(self, ss: gspread.Spreadsheet, title: str, rows: int, cols: int) -> gspread.Worksheet:
        return ss.add_worksheet(title=title, rows=rows, cols=cols)

    @retry_sheets_api
    def _batch_update(self, ss: gspread.Spreadsheet, requests: List[Dict[str, Any]]) -> None:
        if requests:
            ss.batch_update({"requests": requests})

    @retry_sheets_api
    def _values_batch_update(self, ss: gspread.Spreadsheet, data: List[Dict[str, Any]]) -> None:
        if data:
            ss.values_batch_update({"valueInputOption": "USER_ENTERED", "data": data})

    # ========== TargetWriter API ==========

    def check_destination(self) -> None:
        with translate_sheets_errors(self.spreadsheet_id):
            self._spreadsheet()

    def commit(self, plan: LayoutPlan, document_name: str) -> str:
        with self.leases.hold(document_name), translate_sheets_errors(self.spreadsheet_id):
            ss = self._spreadsheet()

            self._delete_existing(ss, document_name)
            ws = self._add_worksheet(
                ss,
                document_name,
                rows=max(MIN_SHEET_ROWS, plan.row_count),
                cols=plan.column_count,
            )
            sheet_id = ws.id
            logger.info("Created new sheet %r (id=%s)", document_name, sheet_id)

            # merges must exist before values land on their anchor cells,
            # and formatting touches merged ranges
            self._batch_update(ss, structure_requests(plan, sheet_id))
            self._values_batch_update(ss, value_data(plan, document_name))
            self._batch_update(ss, format_requests(plan, sheet_id))

        return f"https://docs.google.com/spreadsheets/d/{self.spreadsheet_id}/edit#gid={sheet_id}"

    def check_connection(self) -> Dict[str, Any]:
        with translate_sheets_errors(self.spreadsheet_id):
            ss = self._spreadsheet()
            return {
                "spreadsheetTitle": ss.title,
                "sheets": [ws.title for ws in ss.worksheets()],
            }
