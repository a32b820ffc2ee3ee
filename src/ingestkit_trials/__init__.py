"""ingestkit-trials -- agricultural trial workbook ingestion for the ingestkit framework.

Public API exports for the router, pipeline components, models, errors and
configuration.
"""

from ingestkit_trials.assembler import (
    TrialAssembler,
    apply_date_selections,
    guess_unit,
    union_assessment_names,
)
from ingestkit_trials.cells import CellKind, CellValue, to_cell
from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.dates import DateInterpreter
from ingestkit_trials.errors import (
    DateSelectionError,
    ErrorCode,
    FileReadError,
    HeaderNotFoundError,
    IngestError,
    NoDataSheetsError,
    TrialIngestException,
)
from ingestkit_trials.header import locate_header_row, map_columns
from ingestkit_trials.idempotency import compute_ingest_key
from ingestkit_trials.layout import GridLayoutBuilder, build_treatment_index
from ingestkit_trials.metadata import extract_metadata
from ingestkit_trials.models import (
    AssessmentColumn,
    AssessmentEntry,
    AssessmentSnapshot,
    AssessmentType,
    DateCandidate,
    DateInterpretation,
    GridCell,
    GridLayout,
    HeaderMap,
    ImportResult,
    IngestKey,
    ParsedSheet,
    PlotRecord,
    Sheet,
    SheetMetadata,
    Trial,
    TrialConfig,
    TrialMetadata,
    Workbook,
)
from ingestkit_trials.reader import WorkbookReader
from ingestkit_trials.router import TrialImportRouter, create_default_router, import_trial
from ingestkit_trials.rows import extract_plot_records
from ingestkit_trials.security import TrialFileScanner
from ingestkit_trials.selector import select_data_sheets
from ingestkit_trials.sheet_parser import SheetParser

__all__ = [
    # Router
    "TrialImportRouter",
    "create_default_router",
    "import_trial",
    # Pipeline components
    "TrialFileScanner",
    "WorkbookReader",
    "select_data_sheets",
    "locate_header_row",
    "map_columns",
    "extract_metadata",
    "extract_plot_records",
    "SheetParser",
    "DateInterpreter",
    "GridLayoutBuilder",
    "build_treatment_index",
    "TrialAssembler",
    "apply_date_selections",
    "guess_unit",
    "union_assessment_names",
    # Cells
    "CellKind",
    "CellValue",
    "to_cell",
    # Idempotency
    "IngestKey",
    "compute_ingest_key",
    # Models
    "Workbook",
    "Sheet",
    "HeaderMap",
    "AssessmentColumn",
    "PlotRecord",
    "SheetMetadata",
    "ParsedSheet",
    "DateCandidate",
    "DateInterpretation",
    "AssessmentType",
    "GridCell",
    "GridLayout",
    "AssessmentEntry",
    "AssessmentSnapshot",
    "TrialConfig",
    "TrialMetadata",
    "Trial",
    "ImportResult",
    # Errors
    "ErrorCode",
    "IngestError",
    "TrialIngestException",
    "FileReadError",
    "NoDataSheetsError",
    "HeaderNotFoundError",
    "DateSelectionError",
    # Config
    "TrialImportConfig",
]
