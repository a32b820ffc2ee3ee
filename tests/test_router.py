"""End-to-end tests for TrialImportRouter."""

from __future__ import annotations

from pathlib import Path

import pytest

from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.errors import (
    ErrorCode,
    FileReadError,
    HeaderNotFoundError,
    NoDataSheetsError,
)
from ingestkit_trials.models import Workbook
from ingestkit_trials.router import TrialImportRouter, create_default_router, import_trial

from tests.conftest import build_xlsx, make_sheet, trial_rows


@pytest.fixture()
def router(default_config: TrialImportConfig, fixed_clock) -> TrialImportRouter:
    return TrialImportRouter(default_config, clock=fixed_clock)


class TestProcess:
    def test_scenario_workbook(self, router: TrialImportRouter, scenario_xlsx: bytes) -> None:
        result = router.process(scenario_xlsx, filename="trial.xlsx")
        trial = result.trial

        assert result.sheets_parsed == ["01.03.24", "02.03.24"]
        assert result.sheets_excluded == ["Sheet1"]
        assert [s.date for s in trial.assessment_dates] == ["2024-03-01", "2024-03-02"]
        assert [len(b) for b in trial.grid_layout.blocks] == [3, 3]
        assert [at.name for at in trial.config.assessment_types] == ["Turf Quality"]
        assert trial.assessment_dates[1].assessments["Turf Quality"]["2-203"].value == "9"
        assert trial.id == result.ingest_key
        assert trial.requires_review
        assert ErrorCode.W_DATE_AMBIGUOUS.value in result.warnings
        assert ErrorCode.W_SHEET_EXCLUDED.value in result.warnings
        assert len(result.date_interpretations) == 2

    def test_plot_count_equals_valid_rows(self, router: TrialImportRouter) -> None:
        rows = trial_rows()
        rows.insert(7, ["X"])
        rows.append([1, 101, 1, 9])
        data = build_xlsx({"25.03.24": rows})
        result = router.process(data, filename="trial.xlsx")
        assert result.trial.grid_layout.plot_count == 6
        codes = [d.code for d in result.error_details]
        assert ErrorCode.W_ROW_BLANK_MARKER in codes
        assert ErrorCode.W_DUPLICATE_PLOT in codes

    def test_warnings_deduplicated(self, router: TrialImportRouter) -> None:
        rows = trial_rows(value_for=lambda b, t: ["dead"])
        result = router.process(build_xlsx({"25.03.24": rows}), filename="t.xlsx")
        assert result.warnings.count(ErrorCode.W_VALUE_NOT_NUMERIC.value) == 1
        assert len(result.error_details) == 6

    def test_metadata_date_preferred(self, router: TrialImportRouter) -> None:
        rows = trial_rows(metadata=[["Date", "2024-07-01"]])
        result = router.process(build_xlsx({"Week 1": rows}), filename="t.xlsx")
        assert result.trial.assessment_dates[0].date == "2024-07-01"
        assert not result.trial.requires_review

    def test_idempotent_key(self, router: TrialImportRouter, scenario_xlsx: bytes) -> None:
        first = router.process(scenario_xlsx, filename="trial.xlsx")
        second = router.process(scenario_xlsx, filename="trial.xlsx")
        assert first.ingest_key == second.ingest_key
        assert first.ingest_run_id != second.ingest_run_id
        assert first.trial.storage_payload() == second.trial.storage_payload()


class TestFailures:
    def test_no_data_sheets(self, router: TrialImportRouter) -> None:
        data = build_xlsx({"Sheet1": [["a"]], "Spare": [["b"]]})
        with pytest.raises(NoDataSheetsError):
            router.process(data, filename="trial.xlsx")

    def test_header_missing(self, router: TrialImportRouter) -> None:
        data = build_xlsx({"01.03.24": trial_rows(), "02.03.24": [["Block", "Plot"], [1, 1]]})
        with pytest.raises(HeaderNotFoundError) as exc_info:
            router.process(data, filename="trial.xlsx")
        assert exc_info.value.sheet_name == "02.03.24"

    def test_bad_extension(self, router: TrialImportRouter, scenario_xlsx: bytes) -> None:
        with pytest.raises(FileReadError) as exc_info:
            router.process(scenario_xlsx, filename="trial.csv")
        assert exc_info.value.code == ErrorCode.E_SECURITY_BAD_EXTENSION
        assert exc_info.value.message.startswith("Please select a valid Excel file")

    def test_corrupt_zip(self, router: TrialImportRouter) -> None:
        with pytest.raises(FileReadError) as exc_info:
            router.process(b"PK\x03\x04 not really a zip", filename="trial.xlsx")
        assert exc_info.value.code == ErrorCode.E_PARSE_CORRUPT

    def test_empty_bytes(self, router: TrialImportRouter) -> None:
        with pytest.raises(FileReadError) as exc_info:
            router.process(b"")
        assert exc_info.value.code == ErrorCode.E_PARSE_EMPTY

    def test_missing_file(self, router: TrialImportRouter, tmp_path: Path) -> None:
        with pytest.raises(FileReadError) as exc_info:
            router.process_file(str(tmp_path / "missing.xlsx"))
        assert exc_info.value.code == ErrorCode.E_FILE_READ


class TestEntryPoints:
    def test_process_workbook(self, router: TrialImportRouter) -> None:
        workbook = Workbook(sheets=[make_sheet("25.03.24", trial_rows())])
        first = router.process_workbook(workbook)
        second = router.process_workbook(workbook)
        assert first.trial.grid_layout.plot_count == 6
        assert first.ingest_key == second.ingest_key

    def test_process_file(self, router: TrialImportRouter, tmp_path: Path, scenario_xlsx: bytes) -> None:
        path = tmp_path / "trial.xlsx"
        path.write_bytes(scenario_xlsx)
        result = router.process_file(str(path))
        assert result.sheets_parsed == ["01.03.24", "02.03.24"]

    @pytest.mark.asyncio
    async def test_aprocess_file(
        self, router: TrialImportRouter, tmp_path: Path, scenario_xlsx: bytes
    ) -> None:
        path = tmp_path / "trial.xlsx"
        path.write_bytes(scenario_xlsx)
        result = await router.aprocess_file(str(path))
        assert result.ingest_key == router.process_file(str(path)).ingest_key

    def test_create_default_router_overrides(self) -> None:
        router = create_default_router(excluded_sheet_patterns=["template"])
        data = build_xlsx({"Template": [["x"]], "Sheet1": trial_rows()})
        assert router.process(data, filename="t.xlsx").sheets_parsed == ["Sheet1"]

    def test_import_trial(self, scenario_xlsx: bytes) -> None:
        result = import_trial(scenario_xlsx, filename="trial.xlsx")
        assert result.trial.config.blocks == 2

    def test_tenant_changes_key(self, scenario_xlsx: bytes) -> None:
        a = import_trial(scenario_xlsx)
        b = import_trial(scenario_xlsx, config=TrialImportConfig(tenant_id="club-a"))
        assert a.ingest_key != b.ingest_key
