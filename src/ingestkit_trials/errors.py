"""Normalized error codes and structured error model for the ingestkit-trials pipeline.

``ErrorCode`` lists every fatal (``E_``) and non-fatal (``W_``) condition the
pipeline can report.  ``IngestError`` is the structured record collected on
the diagnostic stream; ``TrialIngestException`` wraps one so fatal conditions
can be raised and caught.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Normalized error codes for the ingestkit-trials pipeline.

    Codes prefixed with ``E_`` abort the import; codes prefixed with ``W_``
    are non-fatal diagnostics.  Values equal their names so they are stable
    strings suitable for metrics and alerting.
    """

    # Security / read errors
    E_SECURITY_BAD_EXTENSION = "E_SECURITY_BAD_EXTENSION"
    E_SECURITY_TOO_LARGE = "E_SECURITY_TOO_LARGE"
    E_SECURITY_BAD_MAGIC = "E_SECURITY_BAD_MAGIC"
    E_FILE_READ = "E_FILE_READ"

    # Parse errors
    E_PARSE_CORRUPT = "E_PARSE_CORRUPT"
    E_PARSE_EMPTY = "E_PARSE_EMPTY"
    E_NO_DATA_SHEETS = "E_NO_DATA_SHEETS"
    E_HEADER_NOT_FOUND = "E_HEADER_NOT_FOUND"

    # Caller-side confirmation errors
    E_DATE_SELECTION_INVALID = "E_DATE_SELECTION_INVALID"

    # Warnings (non-fatal)
    W_LARGE_FILE = "W_LARGE_FILE"
    W_PARSER_FALLBACK = "W_PARSER_FALLBACK"
    W_SHEET_SKIPPED_CHART = "W_SHEET_SKIPPED_CHART"
    W_SHEET_EXCLUDED = "W_SHEET_EXCLUDED"
    W_TREATMENT_COLUMN_MISSING = "W_TREATMENT_COLUMN_MISSING"
    W_ROW_BLANK_MARKER = "W_ROW_BLANK_MARKER"
    W_ROW_MISSING_KEY = "W_ROW_MISSING_KEY"
    W_ROW_INVALID_KEY = "W_ROW_INVALID_KEY"
    W_DUPLICATE_PLOT = "W_DUPLICATE_PLOT"
    W_VALUE_NOT_NUMERIC = "W_VALUE_NOT_NUMERIC"
    W_DATE_MISSING = "W_DATE_MISSING"
    W_DATE_AMBIGUOUS = "W_DATE_AMBIGUOUS"
    W_DATE_FALLBACK = "W_DATE_FALLBACK"
    W_TREATMENT_UNMAPPED = "W_TREATMENT_UNMAPPED"
    W_BLOCK_OUT_OF_RANGE = "W_BLOCK_OUT_OF_RANGE"
    W_PLOT_NOT_IN_LAYOUT = "W_PLOT_NOT_IN_LAYOUT"


class IngestError(BaseModel):
    """Structured error with code, message, and location context.

    Carries an ``ErrorCode``, a human-readable message, and optional context
    about which sheet, row and processing stage produced it.  ``row_index``
    is 0-based into the sheet's row grid.
    """

    code: ErrorCode
    message: str
    sheet_name: str | None = None
    row_index: int | None = None
    stage: str | None = None
    recoverable: bool = False


class TrialIngestException(Exception):
    """Raisable exception wrapping an :class:`IngestError` data model.

    The structured error is available as ``.error`` for inspection and
    serialization; convenience properties delegate to it.
    """

    default_code: ErrorCode = ErrorCode.E_PARSE_CORRUPT
    default_stage: str | None = None

    def __init__(self, message: str, **kwargs: object) -> None:
        kwargs.setdefault("code", self.default_code)
        kwargs.setdefault("stage", self.default_stage)
        self.error = IngestError(message=message, **kwargs)  # type: ignore[arg-type]
        super().__init__(message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stage(self) -> str | None:
        return self.error.stage

    @property
    def sheet_name(self) -> str | None:
        return self.error.sheet_name

    @property
    def recoverable(self) -> bool:
        return self.error.recoverable


class FileReadError(TrialIngestException):
    """The byte buffer could not be read or decoded as a workbook."""

    default_code = ErrorCode.E_FILE_READ
    default_stage = "read"


class NoDataSheetsError(TrialIngestException):
    """Every sheet in the workbook was filtered out by the sheet selector."""

    default_code = ErrorCode.E_NO_DATA_SHEETS
    default_stage = "select"

    def __init__(self, message: str = "No data sheets found in the Excel file", **kwargs: object) -> None:
        super().__init__(message, **kwargs)


class HeaderNotFoundError(TrialIngestException):
    """No row in the scan window carries both the block and plot markers."""

    default_code = ErrorCode.E_HEADER_NOT_FOUND
    default_stage = "header"

    def __init__(self, sheet_name: str, scan_rows: int = 20) -> None:
        super().__init__(
            f"Could not find header row in sheet: {sheet_name} "
            f"(scanned first {scan_rows} rows)",
            sheet_name=sheet_name,
        )


class DateSelectionError(TrialIngestException):
    """Caller-supplied date confirmations do not fit the trial."""

    default_code = ErrorCode.E_DATE_SELECTION_INVALID
    default_stage = "confirm"
