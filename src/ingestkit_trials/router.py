"""TrialImportRouter -- orchestrator and public API for ingestkit-trials.

Drives one workbook through the import pipeline:

1. Pre-flight scan of the byte buffer (:class:`TrialFileScanner`).
2. Compute the deterministic :class:`IngestKey`; its digest becomes the
   trial id.
3. Read the workbook (:class:`WorkbookReader`).
4. Select data sheets, then parse each one in order (:class:`SheetParser`).
5. Interpret each sheet's date token (:class:`DateInterpreter`).
6. Assemble the trial with the first data sheet as the layout schema
   (:class:`TrialAssembler`).

The router is **fail-fast**: a rejected buffer, a workbook without data
sheets, or any sheet without a header raises and no partial trial is
returned.  Everything non-fatal is collected into
``ImportResult.error_details``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
import uuid
from collections.abc import Callable
from datetime import date
from pathlib import Path

from ingestkit_trials.assembler import TrialAssembler
from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.dates import DateInterpreter
from ingestkit_trials.errors import ErrorCode, FileReadError, IngestError
from ingestkit_trials.idempotency import compute_ingest_key
from ingestkit_trials.models import (
    DateInterpretation,
    ImportResult,
    IngestKey,
    ParsedSheet,
    Workbook,
)
from ingestkit_trials.reader import WorkbookReader
from ingestkit_trials.security import TrialFileScanner
from ingestkit_trials.selector import select_data_sheets
from ingestkit_trials.sheet_parser import SheetParser

logger = logging.getLogger("ingestkit_trials")


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


class TrialImportRouter:
    """Orchestrator that drives the full trial import pipeline.

    Parameters
    ----------
    config:
        Pipeline configuration.  Uses defaults when *None*.
    clock:
        Source of "today" for missing and unparseable dates.  Defaults to
        :meth:`datetime.date.today`.
    """

    def __init__(
        self,
        config: TrialImportConfig | None = None,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self._config = config or TrialImportConfig()

        self._scanner = TrialFileScanner(self._config)
        self._reader = WorkbookReader(self._config)
        self._sheet_parser = SheetParser(self._config)
        self._date_interpreter = DateInterpreter(clock)
        self._assembler = TrialAssembler(self._config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(
        self,
        data: bytes,
        filename: str | None = None,
        source_uri: str | None = None,
    ) -> ImportResult:
        """Import a trial from the raw bytes of a workbook.

        Parameters
        ----------
        data:
            The complete workbook file contents.
        filename:
            Original file name; used for the extension check and logging.
        source_uri:
            Optional source URI stored in the ingest key.

        Raises
        ------
        FileReadError
            If the buffer fails the pre-flight scan or cannot be decoded.
        NoDataSheetsError
            If every sheet is excluded by name.
        HeaderNotFoundError
            If a data sheet has no header row.
        """
        start = time.monotonic()
        label = filename or "<bytes>"

        scan_errors = self._scanner.scan(data, filename)
        fatal = [e for e in scan_errors if e.code.value.startswith("E_")]
        if fatal:
            first = fatal[0]
            logger.error("Rejected %s: %s", label, first.message)
            raise FileReadError(first.message, code=first.code, stage=first.stage)

        ingest_key = compute_ingest_key(
            data,
            parser_version=self._config.parser_version,
            tenant_id=self._config.tenant_id,
            source_uri=source_uri,
        )

        workbook, read_errors = self._reader.read(data)
        return self._run(workbook, ingest_key, label, scan_errors + read_errors, start)

    def process_workbook(
        self,
        workbook: Workbook,
        source_uri: str | None = None,
    ) -> ImportResult:
        """Import a trial from an already-read :class:`Workbook`.

        The ingest key is computed from the workbook's canonical JSON form.
        """
        start = time.monotonic()
        ingest_key = compute_ingest_key(
            workbook.model_dump_json().encode("utf-8"),
            parser_version=self._config.parser_version,
            tenant_id=self._config.tenant_id,
            source_uri=source_uri,
        )
        return self._run(workbook, ingest_key, "<workbook>", [], start)

    def process_file(self, file_path: str, source_uri: str | None = None) -> ImportResult:
        """Read *file_path* and import it.

        Raises:
            FileReadError: If the file cannot be read.
        """
        data = _read_file(file_path)
        return self.process(
            data,
            filename=os.path.basename(file_path),
            source_uri=source_uri or Path(file_path).resolve().as_posix(),
        )

    async def aprocess_file(
        self,
        file_path: str,
        source_uri: str | None = None,
    ) -> ImportResult:
        """Async variant of :meth:`process_file`.

        The file read is the only suspend point; parsing runs synchronously
        once the whole buffer is available.
        """
        data = await asyncio.to_thread(_read_file, file_path)
        return self.process(
            data,
            filename=os.path.basename(file_path),
            source_uri=source_uri or Path(file_path).resolve().as_posix(),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        workbook: Workbook,
        ingest_key: IngestKey,
        label: str,
        diagnostics: list[IngestError],
        start: float,
    ) -> ImportResult:
        selected = select_data_sheets(workbook.sheet_names, self._config, diagnostics)
        excluded = [n for n in workbook.sheet_names if n not in selected]

        parsed: list[ParsedSheet] = []
        interpretations: list[DateInterpretation] = []
        for name in selected:
            sheet = self._sheet_parser.parse(workbook.sheet(name), diagnostics)
            parsed.append(sheet)
            interpretations.append(
                self._date_interpreter.interpret(
                    sheet.date_token, sheet_name=name, diagnostics=diagnostics
                )
            )

        trial = self._assembler.assemble(
            parsed,
            schema_sheet=parsed[0],
            interpretations=interpretations,
            trial_id=ingest_key.key,
            diagnostics=diagnostics,
        )

        elapsed = time.monotonic() - start
        result = ImportResult(
            trial=trial,
            date_interpretations=interpretations,
            ingest_key=ingest_key.key,
            ingest_run_id=str(uuid.uuid4()),
            sheets_parsed=selected,
            sheets_excluded=excluded,
            warnings=_warning_codes(diagnostics),
            error_details=list(diagnostics),
            processing_time_seconds=elapsed,
        )

        logger.info(
            "Imported %s: key=%s sheets=%d excluded=%d dates_to_review=%d "
            "warnings=%d time=%.3fs",
            label,
            ingest_key.key[:16],
            len(selected),
            len(excluded),
            sum(1 for i in interpretations if i.needs_confirmation),
            len(diagnostics),
            elapsed,
        )
        return result


def _read_file(file_path: str) -> bytes:
    try:
        return Path(file_path).read_bytes()
    except OSError as exc:
        raise FileReadError(
            f"Failed to read file: {file_path}: {exc}",
            code=ErrorCode.E_FILE_READ,
        ) from exc


def _warning_codes(diagnostics: list[IngestError]) -> list[str]:
    codes: dict[str, None] = {}
    for d in diagnostics:
        codes.setdefault(d.code.value, None)
    return list(codes)


# ---------------------------------------------------------------------------
# Convenience
# ---------------------------------------------------------------------------


def create_default_router(**overrides) -> TrialImportRouter:
    """Create a :class:`TrialImportRouter` with default settings.

    ``config`` and ``clock`` are passed to the router; any other keyword
    arguments become :class:`TrialImportConfig` overrides.
    """
    config = overrides.pop("config", None)
    clock = overrides.pop("clock", None)
    if config is None:
        config = TrialImportConfig(**overrides)
    return TrialImportRouter(config=config, clock=clock)


def import_trial(
    data: bytes,
    filename: str | None = None,
    config: TrialImportConfig | None = None,
) -> ImportResult:
    """One-shot import of a workbook byte buffer with a fresh router."""
    return TrialImportRouter(config).process(data, filename=filename)
