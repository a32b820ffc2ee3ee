"""Trial assembler -- merges parsed sheets into one :class:`Trial`.

The schema sheet (normally the first data sheet) defines blocks, treatments
and the grid layout; every sheet contributes one dated assessment snapshot.
Assessment types are the order-preserving union of all sheets' assessment
columns, and every plot gets an entry for every type.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import date, datetime

from ingestkit_trials.cells import format_number
from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.dates import calendar_date
from ingestkit_trials.errors import DateSelectionError, ErrorCode, IngestError
from ingestkit_trials.layout import GridLayoutBuilder, build_treatment_index, treatment_name
from ingestkit_trials.models import (
    AssessmentEntry,
    AssessmentSnapshot,
    AssessmentType,
    DateInterpretation,
    ParsedSheet,
    Trial,
    TrialConfig,
    TrialMetadata,
)

logger = logging.getLogger("ingestkit_trials")

_NOT_ENTERED = AssessmentEntry(value="", entered=False)


def guess_unit(name: str) -> str:
    """Infer a display unit from an assessment name."""
    lower = name.lower()
    if "%" in lower or "percent" in lower:
        return "%"
    if "ndvi" in lower:
        return ""
    if "vwc" in lower or "moisture" in lower:
        return "%"
    if "temp" in lower:
        return "°C"
    return ""


def union_assessment_names(sheets: list[ParsedSheet]) -> list[str]:
    """Assessment names across all sheets, in order of first appearance."""
    names: dict[str, None] = {}
    for sheet in sheets:
        for name in sheet.header.assessment_names:
            names.setdefault(name, None)
    return list(names)


class TrialAssembler:
    """Builds the final trial record from parsed sheets."""

    def __init__(self, config: TrialImportConfig) -> None:
        self._config = config
        self._layout_builder = GridLayoutBuilder(config)

    def assemble(
        self,
        sheets: list[ParsedSheet],
        schema_sheet: ParsedSheet,
        interpretations: list[DateInterpretation],
        trial_id: str,
        diagnostics: list[IngestError] | None = None,
    ) -> Trial:
        """Assemble a :class:`Trial`.

        Parameters
        ----------
        sheets:
            Every parsed data sheet, in workbook order.
        schema_sheet:
            The sheet whose plots define blocks, treatments and the grid.
        interpretations:
            One date interpretation per entry of *sheets*.
        trial_id:
            Identifier for the trial (the ingest key digest).
        diagnostics:
            Optional collector for non-fatal layout mismatches.

        Raises
        ------
        ValueError
            If *sheets* is empty or *interpretations* does not line up with it.
        """
        if not sheets:
            raise ValueError("No sheets to process")
        if len(interpretations) != len(sheets):
            raise ValueError(
                f"Expected {len(sheets)} date interpretations, got {len(interpretations)}"
            )

        cfg = self._config
        schema_plots = schema_sheet.plots
        treatments = sorted({p.treatment for p in schema_plots})
        block_count = len({p.block for p in schema_plots})
        treatment_index = build_treatment_index(treatments)

        assessment_types = [
            AssessmentType(
                name=name,
                unit=guess_unit(name),
                min=cfg.assessment_default_min,
                max=cfg.assessment_default_max,
            )
            for name in union_assessment_names(sheets)
        ]

        grid_layout = self._layout_builder.build(
            schema_plots,
            block_count,
            treatment_index,
            sheet_name=schema_sheet.sheet_name,
            diagnostics=diagnostics,
        )
        layout_ids = grid_layout.plot_ids()

        snapshots: list[AssessmentSnapshot] = []
        for sheet, interp in zip(sheets, interpretations):
            if sheet is not schema_sheet:
                self._check_against_schema(sheet, treatment_index, layout_ids, diagnostics)
            snapshots.append(
                AssessmentSnapshot(
                    date=interp.detected,
                    sheet_name=sheet.sheet_name,
                    assessments=self._build_assessments(sheet, assessment_types),
                )
            )

        first = sheets[0].metadata
        trial = Trial(
            id=trial_id,
            name=first.trial_name or cfg.default_trial_name,
            config=TrialConfig(
                blocks=block_count,
                treatments=len(treatments),
                treatment_names=[treatment_name(t, cfg) for t in treatments],
                assessment_types=assessment_types,
            ),
            grid_layout=grid_layout,
            assessment_dates=snapshots,
            metadata=TrialMetadata(
                area=first.area,
                assessor=first.assessor,
                notes=first.notes,
            ),
            date_interpretations=list(interpretations),
        )

        logger.info(
            "Assembled trial: blocks=%d treatments=%d assessment_types=%d dates=%d plots=%d",
            block_count,
            len(treatments),
            len(assessment_types),
            len(snapshots),
            grid_layout.plot_count,
        )
        return trial

    # -- internal helpers ----------------------------------------------------

    @staticmethod
    def _build_assessments(
        sheet: ParsedSheet,
        assessment_types: list[AssessmentType],
    ) -> dict[str, dict[str, AssessmentEntry]]:
        assessments: dict[str, dict[str, AssessmentEntry]] = {}
        for at in assessment_types:
            per_plot: dict[str, AssessmentEntry] = {}
            for plot in sheet.plots:
                value = plot.values.get(at.name)
                if value is None or math.isnan(value):
                    per_plot[plot.plot_id] = _NOT_ENTERED
                else:
                    per_plot[plot.plot_id] = AssessmentEntry(
                        value=format_number(value), entered=True
                    )
            assessments[at.name] = per_plot
        return assessments

    @staticmethod
    def _check_against_schema(
        sheet: ParsedSheet,
        treatment_index: Mapping[int, int],
        layout_ids: set[str],
        diagnostics: list[IngestError] | None,
    ) -> None:
        for plot in sheet.plots:
            problems: list[tuple[ErrorCode, str]] = []
            if plot.treatment not in treatment_index:
                problems.append((
                    ErrorCode.W_TREATMENT_UNMAPPED,
                    f"Treatment {plot.treatment} of plot {plot.plot_id} does not "
                    "appear in the schema sheet.",
                ))
            if plot.plot_id not in layout_ids:
                problems.append((
                    ErrorCode.W_PLOT_NOT_IN_LAYOUT,
                    f"Plot {plot.plot_id} is not part of the grid layout.",
                ))
            for code, message in problems:
                logger.warning("Sheet '%s': %s", sheet.sheet_name, message)
                if diagnostics is not None:
                    diagnostics.append(
                        IngestError(
                            code=code,
                            message=message,
                            sheet_name=sheet.sheet_name,
                            stage="assemble",
                            recoverable=True,
                        )
                    )


# ---------------------------------------------------------------------------
# Caller-side date confirmation
# ---------------------------------------------------------------------------


def apply_date_selections(trial: Trial, selected_dates: list[str | date]) -> Trial:
    """Return a copy of *trial* with caller-confirmed assessment dates.

    *selected_dates* holds one ISO date (or :class:`datetime.date`) per
    assessment snapshot, in the same order.  The matching interpretations are
    marked as confirmed.

    Raises:
        DateSelectionError: If the count does not match or a value is not a
            real ``YYYY-MM-DD`` date.
    """
    if len(selected_dates) != len(trial.assessment_dates):
        raise DateSelectionError(
            f"Expected {len(trial.assessment_dates)} dates, got {len(selected_dates)}"
        )

    iso_dates = [_as_iso(value, idx) for idx, value in enumerate(selected_dates)]

    snapshots = [
        snap.model_copy(update={"date": iso})
        for snap, iso in zip(trial.assessment_dates, iso_dates)
    ]
    interpretations = [
        interp.model_copy(update={"detected": iso_dates[idx], "needs_confirmation": False})
        if idx < len(iso_dates) else interp
        for idx, interp in enumerate(trial.date_interpretations)
    ]
    return trial.model_copy(
        update={"assessment_dates": snapshots, "date_interpretations": interpretations}
    )


def _as_iso(value: str | date, position: int) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    parts = value.strip().split("-")
    if len(parts) == 3 and all(p.isdigit() for p in parts) and len(parts[0]) == 4:
        parsed = calendar_date(int(parts[0]), int(parts[1]), int(parts[2]))
        if parsed is not None:
            return parsed.isoformat()
    raise DateSelectionError(
        f"Date #{position + 1} is not a valid YYYY-MM-DD date: {value!r}"
    )
