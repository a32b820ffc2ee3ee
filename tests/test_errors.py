"""Tests for error codes and the raisable exception hierarchy."""

from __future__ import annotations

import pytest

from ingestkit_trials.errors import (
    DateSelectionError,
    ErrorCode,
    FileReadError,
    HeaderNotFoundError,
    IngestError,
    NoDataSheetsError,
    TrialIngestException,
)


class TestErrorCode:
    def test_values_equal_names(self) -> None:
        for code in ErrorCode:
            assert code.value == code.name

    def test_every_code_is_fatal_or_warning(self) -> None:
        for code in ErrorCode:
            assert code.value.startswith(("E_", "W_"))

    def test_is_str(self) -> None:
        assert ErrorCode.W_DATE_AMBIGUOUS == "W_DATE_AMBIGUOUS"


class TestIngestError:
    def test_defaults(self) -> None:
        err = IngestError(code=ErrorCode.E_FILE_READ, message="boom")
        assert err.sheet_name is None
        assert err.row_index is None
        assert err.stage is None
        assert err.recoverable is False

    def test_serializes_code_as_string(self) -> None:
        err = IngestError(code=ErrorCode.W_DUPLICATE_PLOT, message="dup", row_index=7)
        dumped = err.model_dump(mode="json")
        assert dumped["code"] == "W_DUPLICATE_PLOT"
        assert dumped["row_index"] == 7


class TestExceptions:
    def test_file_read_defaults(self) -> None:
        exc = FileReadError("cannot read")
        assert exc.code == ErrorCode.E_FILE_READ
        assert exc.stage == "read"
        assert str(exc) == "cannot read"

    def test_code_override(self) -> None:
        exc = FileReadError("corrupt", code=ErrorCode.E_PARSE_CORRUPT)
        assert exc.code == ErrorCode.E_PARSE_CORRUPT
        assert exc.error.message == "corrupt"

    def test_no_data_sheets_default_message(self) -> None:
        exc = NoDataSheetsError()
        assert exc.message == "No data sheets found in the Excel file"
        assert exc.code == ErrorCode.E_NO_DATA_SHEETS

    def test_header_not_found_names_sheet(self) -> None:
        exc = HeaderNotFoundError("01.03.24", scan_rows=20)
        assert exc.sheet_name == "01.03.24"
        assert exc.code == ErrorCode.E_HEADER_NOT_FOUND
        assert "Could not find header row in sheet: 01.03.24" in exc.message

    def test_date_selection_stage(self) -> None:
        exc = DateSelectionError("bad")
        assert exc.stage == "confirm"
        assert exc.recoverable is False

    @pytest.mark.parametrize(
        "exc",
        [FileReadError("x"), NoDataSheetsError(), HeaderNotFoundError("s"), DateSelectionError("x")],
    )
    def test_all_share_base(self, exc: TrialIngestException) -> None:
        assert isinstance(exc, TrialIngestException)
        assert isinstance(exc.error, IngestError)
