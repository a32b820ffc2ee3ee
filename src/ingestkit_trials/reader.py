"""Workbook reader with a parser fallback chain.

Turns a workbook byte buffer into a :class:`~ingestkit_trials.models.Workbook`
of tagged cells:

1. **openpyxl** ``read_only=True, data_only=True`` -- cached cell values,
   chart sheets detected and skipped.
2. **pandas** ``read_excel`` -- used when openpyxl cannot open the file at
   all (e.g. legacy ``.xls``).

Non-fatal events (``W_PARSER_FALLBACK``, ``W_SHEET_SKIPPED_CHART``) are
returned alongside the workbook.  If every parser fails the reader raises
:class:`~ingestkit_trials.errors.FileReadError`.
"""

from __future__ import annotations

import io
import logging
import time

import openpyxl
import pandas as pd
from openpyxl.chartsheet import Chartsheet

from ingestkit_trials.cells import to_row
from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.errors import ErrorCode, FileReadError, IngestError
from ingestkit_trials.models import Sheet, Workbook

logger = logging.getLogger("ingestkit_trials")


class WorkbookReader:
    """Two-tier workbook reader.

    Parameters
    ----------
    config:
        Pipeline configuration; ``log_sample_data`` decides whether parser
        exception text reaches logs and diagnostics.
    """

    def __init__(self, config: TrialImportConfig) -> None:
        self._config = config

    def read(self, data: bytes) -> tuple[Workbook, list[IngestError]]:
        """Read every sheet of the workbook held in *data*.

        Returns
        -------
        tuple[Workbook, list[IngestError]]
            The workbook in original sheet order, and any non-fatal
            warnings raised while reading.

        Raises
        ------
        FileReadError
            If neither openpyxl nor pandas can decode the buffer.
        """
        start = time.monotonic()
        errors: list[IngestError] = []

        try:
            workbook = self._read_openpyxl(data, errors)
        except Exception as exc:
            logger.warning("openpyxl could not open workbook: %s", self._reason(exc))
            try:
                workbook = self._read_pandas(data)
            except Exception as fallback_exc:
                logger.error("All workbook parsers failed: %s", self._reason(fallback_exc))
                raise FileReadError(
                    f"Failed to read file: {self._reason(fallback_exc)}",
                    code=ErrorCode.E_PARSE_CORRUPT,
                ) from fallback_exc
            errors.append(
                IngestError(
                    code=ErrorCode.W_PARSER_FALLBACK,
                    message=f"Workbook parsed via pandas fallback. Reason: {self._reason(exc)}",
                    stage="read",
                    recoverable=True,
                )
            )

        logger.info(
            "Read workbook: %d sheets in %.3fs",
            len(workbook.sheets),
            time.monotonic() - start,
        )
        return workbook, errors

    def _reason(self, exc: Exception) -> str:
        """Exception summary; the message text may quote cell content."""
        if self._config.log_sample_data:
            return f"{type(exc).__name__}: {exc}"
        return type(exc).__name__

    # ------------------------------------------------------------------
    # Tier 1: openpyxl
    # ------------------------------------------------------------------

    def _read_openpyxl(self, data: bytes, errors: list[IngestError]) -> Workbook:
        wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        try:
            sheets: list[Sheet] = []
            for sheet_name in wb.sheetnames:
                ws = wb[sheet_name]
                if isinstance(ws, Chartsheet):
                    errors.append(
                        IngestError(
                            code=ErrorCode.W_SHEET_SKIPPED_CHART,
                            message=f"Sheet '{sheet_name}' is chart-only; skipped.",
                            sheet_name=sheet_name,
                            stage="read",
                            recoverable=True,
                        )
                    )
                    logger.info("Skipped chart-only sheet '%s'", sheet_name)
                    continue
                rows = [to_row(r) for r in ws.iter_rows(values_only=True)]
                sheets.append(Sheet(name=sheet_name, rows=rows))
            return Workbook(sheets=sheets)
        finally:
            wb.close()

    # ------------------------------------------------------------------
    # Tier 2: pandas
    # ------------------------------------------------------------------

    def _read_pandas(self, data: bytes) -> Workbook:
        frames = pd.read_excel(io.BytesIO(data), sheet_name=None, header=None)
        sheets: list[Sheet] = []
        for sname, df in frames.items():
            rows = [
                to_row([_unwrap(v) for v in row])
                for row in df.itertuples(index=False, name=None)
            ]
            sheets.append(Sheet(name=str(sname), rows=rows))
        return Workbook(sheets=sheets)


def _unwrap(value: object) -> object:
    """Convert pandas/numpy scalars to plain Python values."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    item = getattr(value, "item", None)
    if callable(item):
        return item()
    return value
