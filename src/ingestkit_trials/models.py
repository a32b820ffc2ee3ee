"""Pydantic data models for ingestkit-trials.

Defines the input workbook shape, the per-sheet parse artifacts, the date
interpretation report, and the assembled trial record.  Every model is
frozen: entities are created fresh per import call and never mutated.
"""

from __future__ import annotations

import hashlib
from typing import Any

from pydantic import BaseModel, ConfigDict

from ingestkit_trials.cells import CellValue
from ingestkit_trials.errors import IngestError


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Idempotency
# ---------------------------------------------------------------------------


class IngestKey(_Frozen):
    """Deterministic key for deduplication.

    Combines content hash, source URI, parser version, and optional tenant ID
    into a single SHA-256 digest.  Identical workbook bytes imported with the
    same parser version always yield the same key.
    """

    content_hash: str
    source_uri: str
    parser_version: str
    tenant_id: str | None = None

    @property
    def key(self) -> str:
        """Deterministic string key for dedup lookups."""
        parts = [self.content_hash, self.source_uri, self.parser_version]
        if self.tenant_id:
            parts.append(self.tenant_id)
        return hashlib.sha256("|".join(parts).encode()).hexdigest()


# ---------------------------------------------------------------------------
# Workbook input
# ---------------------------------------------------------------------------


class Sheet(_Frozen):
    """A named worksheet as a row-major grid of tagged cells."""

    name: str
    rows: list[list[CellValue]] = []


class Workbook(_Frozen):
    """Ordered sequence of named sheets."""

    sheets: list[Sheet] = []

    @property
    def sheet_names(self) -> list[str]:
        return [s.name for s in self.sheets]

    def sheet(self, name: str) -> Sheet:
        """Return the sheet called *name*.

        Raises:
            KeyError: If the workbook has no such sheet.
        """
        for s in self.sheets:
            if s.name == name:
                return s
        raise KeyError(name)


# ---------------------------------------------------------------------------
# Per-sheet parse artifacts
# ---------------------------------------------------------------------------


class AssessmentColumn(_Frozen):
    """An assessment-value column discovered in a header row."""

    name: str
    index: int


class HeaderMap(_Frozen):
    """Column roles resolved from a header row.

    Marker indices are ``None`` when the header does not carry that marker.
    """

    block_col: int | None = None
    plot_col: int | None = None
    treatment_col: int | None = None
    assessment_cols: list[AssessmentColumn] = []

    @property
    def assessment_names(self) -> list[str]:
        return [c.name for c in self.assessment_cols]


class PlotRecord(_Frozen):
    """One valid data row: a plot and its recorded assessment values.

    ``values`` is sparse -- a missing key means "not entered".  A ``NaN``
    value marks a cell that held non-numeric text.
    """

    block: int
    plot: int
    treatment: int
    values: dict[str, float] = {}

    @property
    def plot_id(self) -> str:
        """Stable identifier shared by the grid layout and assessment maps."""
        return f"{self.block}-{self.plot}"


class SheetMetadata(_Frozen):
    """Free-form fields read from the rows above the header."""

    trial_name: str = ""
    date: str = ""
    area: str = ""
    assessor: str = ""
    notes: str = ""


class ParsedSheet(_Frozen):
    """Everything extracted from one data sheet."""

    sheet_name: str
    header_row_index: int
    metadata: SheetMetadata
    header: HeaderMap
    plots: list[PlotRecord] = []

    @property
    def date_token(self) -> str:
        """Raw date for this sheet: the metadata date, else the sheet name."""
        return self.metadata.date or self.sheet_name


# ---------------------------------------------------------------------------
# Date interpretation
# ---------------------------------------------------------------------------


FALLBACK_FORMAT = "Fallback (today)"


class DateCandidate(_Frozen):
    """One possible calendar reading of a raw date token."""

    format: str
    date: str
    display: str


class DateInterpretation(_Frozen):
    """Disambiguation report for one raw date token.

    ``detected`` is the ISO date used by default; ``options`` lists every
    candidate reading in preference order.
    """

    original: str
    detected: str
    options: list[DateCandidate] = []
    needs_confirmation: bool = False

    @property
    def is_fallback(self) -> bool:
        return bool(self.options) and self.options[0].format == FALLBACK_FORMAT

    @property
    def is_ambiguous(self) -> bool:
        return len(self.options) > 1


# ---------------------------------------------------------------------------
# Trial record
# ---------------------------------------------------------------------------


class AssessmentType(_Frozen):
    """A measured variable recorded per plot per date."""

    name: str
    unit: str = ""
    min: float = 0
    max: float = 100


class GridCell(_Frozen):
    """One plot position in the grid layout."""

    id: str
    block: int
    treatment: int
    treatment_name: str
    plot_number: int
    is_blank: bool = False


class GridLayout(_Frozen):
    """Blocks in order, each an ordered list of plot cells."""

    blocks: list[list[GridCell]] = []

    @property
    def plot_count(self) -> int:
        return sum(len(b) for b in self.blocks)

    def plot_ids(self) -> set[str]:
        return {cell.id for block in self.blocks for cell in block}


class AssessmentEntry(_Frozen):
    """A single plot's value for one assessment type on one date."""

    value: str = ""
    entered: bool = False


class AssessmentSnapshot(_Frozen):
    """All assessment values for one date.

    ``assessments`` maps assessment name -> plot id -> entry.
    """

    date: str
    sheet_name: str
    assessments: dict[str, dict[str, AssessmentEntry]] = {}


class TrialConfig(_Frozen):
    """Layout dimensions and assessment definitions of a trial."""

    blocks: int
    treatments: int
    treatment_names: list[str] = []
    assessment_types: list[AssessmentType] = []


class TrialMetadata(_Frozen):
    """Descriptive fields carried from the first data sheet."""

    area: str = ""
    assessor: str = ""
    notes: str = ""
    imported_from: str = "Excel"


class Trial(_Frozen):
    """The normalized trial record produced by one import."""

    id: str
    name: str
    config: TrialConfig
    grid_layout: GridLayout
    assessment_dates: list[AssessmentSnapshot] = []
    metadata: TrialMetadata = TrialMetadata()
    date_interpretations: list[DateInterpretation] = []

    @property
    def requires_review(self) -> bool:
        """True when any date interpretation asks for human confirmation."""
        return any(i.needs_confirmation for i in self.date_interpretations)

    def fallback_indices(self) -> list[int]:
        """Positions of assessment dates that fell back to today's date."""
        return [
            idx for idx, interp in enumerate(self.date_interpretations)
            if interp.is_fallback
        ]

    def storage_payload(self) -> dict[str, Any]:
        """JSON-ready record for the persistence layer.

        The review-only ``date_interpretations`` list is not included.
        """
        return {
            "id": self.id,
            "name": self.name,
            "config": {
                "blocks": self.config.blocks,
                "treatments": self.config.treatments,
                "treatmentNames": list(self.config.treatment_names),
                "assessmentTypes": [
                    at.model_dump() for at in self.config.assessment_types
                ],
            },
            "gridLayout": [
                [
                    {
                        "id": cell.id,
                        "block": cell.block,
                        "treatment": cell.treatment,
                        "treatmentName": cell.treatment_name,
                        "isBlank": cell.is_blank,
                        "plotNumber": cell.plot_number,
                    }
                    for cell in block
                ]
                for block in self.grid_layout.blocks
            ],
            "assessmentDates": [
                {
                    "date": snap.date,
                    "assessments": {
                        name: {
                            plot_id: entry.model_dump()
                            for plot_id, entry in per_plot.items()
                        }
                        for name, per_plot in snap.assessments.items()
                    },
                }
                for snap in self.assessment_dates
            ],
            "metadata": {
                "area": self.metadata.area,
                "assessor": self.metadata.assessor,
                "notes": self.metadata.notes,
                "importedFrom": self.metadata.imported_from,
            },
            "notes": {},
            "photos": {},
        }


class ImportResult(_Frozen):
    """Final result returned after importing a workbook."""

    trial: Trial
    date_interpretations: list[DateInterpretation] = []
    ingest_key: str
    ingest_run_id: str
    sheets_parsed: list[str] = []
    sheets_excluded: list[str] = []

    warnings: list[str] = []
    error_details: list[IngestError] = []

    processing_time_seconds: float = 0.0
