"""Per-sheet parsing: header, metadata, columns and plot rows."""

from __future__ import annotations

import logging

from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.errors import IngestError
from ingestkit_trials.header import locate_header_row, map_columns
from ingestkit_trials.metadata import extract_metadata
from ingestkit_trials.models import ParsedSheet, Sheet
from ingestkit_trials.rows import extract_plot_records

logger = logging.getLogger("ingestkit_trials")


class SheetParser:
    """Turns one data sheet into a :class:`ParsedSheet`.

    Parameters
    ----------
    config:
        Pipeline configuration (markers, scan window, PII-safe logging).
    """

    def __init__(self, config: TrialImportConfig) -> None:
        self._config = config

    def parse(
        self,
        sheet: Sheet,
        diagnostics: list[IngestError] | None = None,
    ) -> ParsedSheet:
        """Parse *sheet*.

        Raises:
            HeaderNotFoundError: If the sheet has no recognisable header row.
        """
        rows = sheet.rows
        header_idx = locate_header_row(rows, sheet.name, self._config)
        metadata = extract_metadata(rows, header_idx)
        header = map_columns(
            rows[header_idx],
            self._config,
            sheet_name=sheet.name,
            diagnostics=diagnostics,
        )
        plots = extract_plot_records(
            rows,
            header_idx,
            header,
            self._config,
            sheet_name=sheet.name,
            diagnostics=diagnostics,
        )

        logger.info(
            "Parsed sheet '%s': header_row=%d assessment_columns=%d plots=%d",
            sheet.name,
            header_idx,
            len(header.assessment_cols),
            len(plots),
        )
        return ParsedSheet(
            sheet_name=sheet.name,
            header_row_index=header_idx,
            metadata=metadata,
            header=header,
            plots=plots,
        )
