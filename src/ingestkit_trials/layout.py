"""Grid layout builder.

Arranges the schema sheet's plot records into blocks of grid cells.  The
treatment-number -> index map is built once, frozen, and shared with the
trial assembler so later sheets are checked against the same schema.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.errors import ErrorCode, IngestError
from ingestkit_trials.models import GridCell, GridLayout, PlotRecord

logger = logging.getLogger("ingestkit_trials")


def build_treatment_index(treatments: list[int]) -> Mapping[int, int]:
    """Map each distinct treatment number to its zero-based sorted position."""
    ordered = sorted(set(treatments))
    return MappingProxyType({t: idx for idx, t in enumerate(ordered)})


def treatment_name(number: int, config: TrialImportConfig) -> str:
    """Display name of a treatment, e.g. ``"Treatment 3"``."""
    return config.treatment_name_template.format(number=number)


class GridLayoutBuilder:
    """Builds the block-ordered grid layout from schema plot records."""

    def __init__(self, config: TrialImportConfig) -> None:
        self._config = config

    def build(
        self,
        plots: list[PlotRecord],
        block_count: int,
        treatment_index: Mapping[int, int],
        sheet_name: str | None = None,
        diagnostics: list[IngestError] | None = None,
    ) -> GridLayout:
        """Lay out *plots* into blocks ``1..block_count``.

        Within a block, cells are ordered by plot number.  A treatment missing
        from *treatment_index* is placed at index 0 and reported as
        ``W_TREATMENT_UNMAPPED``; a plot whose block lies outside
        ``1..block_count`` is reported as ``W_BLOCK_OUT_OF_RANGE`` and left
        out of the grid.
        """
        blocks: list[list[GridCell]] = []

        for block_num in range(1, block_count + 1):
            in_block = sorted(
                (p for p in plots if p.block == block_num), key=lambda p: p.plot
            )
            cells: list[GridCell] = []
            for plot in in_block:
                index = treatment_index.get(plot.treatment)
                if index is None:
                    index = 0
                    logger.warning(
                        "Treatment %d of plot %s is not in the treatment map; "
                        "using index 0.",
                        plot.treatment,
                        plot.plot_id,
                    )
                    _report(
                        diagnostics,
                        ErrorCode.W_TREATMENT_UNMAPPED,
                        f"Treatment {plot.treatment} of plot {plot.plot_id} is not "
                        "in the treatment map; placed at index 0.",
                        sheet_name,
                    )
                cells.append(
                    GridCell(
                        id=plot.plot_id,
                        block=plot.block,
                        treatment=index,
                        treatment_name=treatment_name(plot.treatment, self._config),
                        plot_number=plot.plot,
                    )
                )
            blocks.append(cells)

        for plot in plots:
            if not 1 <= plot.block <= block_count:
                _report(
                    diagnostics,
                    ErrorCode.W_BLOCK_OUT_OF_RANGE,
                    f"Plot {plot.plot_id} is in block {plot.block}, outside "
                    f"1..{block_count}; left out of the grid.",
                    sheet_name,
                )

        return GridLayout(blocks=blocks)


def _report(
    diagnostics: list[IngestError] | None,
    code: ErrorCode,
    message: str,
    sheet_name: str | None,
) -> None:
    if diagnostics is None:
        return
    diagnostics.append(
        IngestError(
            code=code,
            message=message,
            sheet_name=sheet_name,
            stage="layout",
            recoverable=True,
        )
    )
