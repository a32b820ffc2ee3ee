"""Configuration model for the ingestkit-trials pipeline.

Provides ``TrialImportConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib

from pydantic import BaseModel


class TrialImportConfig(BaseModel):
    """All tunable parameters with sensible defaults.

    The marker strings are matched case-insensitively as substrings of the
    cell text.  Override individual values via constructor kwargs or load a
    complete config from a file with ``TrialImportConfig.from_file(path)``.
    """

    # --- Identity ---
    parser_version: str = "ingestkit_trials:1.0.0"
    tenant_id: str | None = None

    # --- Security / resource limits ---
    max_file_size_mb: int = 50
    allowed_extensions: list[str] = [".xlsx", ".xlsm", ".xls"]

    # --- Sheet selection ---
    excluded_sheet_patterns: list[str] = ["sheet1", "trial plan", "spare", "empty"]

    # --- Structure detection ---
    header_scan_rows: int = 20
    block_marker: str = "block!"
    plot_marker: str = "plot!"
    treatment_marker: str = "treat"
    blank_plot_marker: str = "X"

    # --- Trial assembly ---
    default_trial_name: str = "Imported Trial"
    treatment_name_template: str = "Treatment {number}"
    assessment_default_min: float = 0
    assessment_default_max: float = 100

    # --- Logging / PII safety ---
    log_sample_data: bool = False

    @classmethod
    def from_file(cls, path: str) -> TrialImportConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Keys not present in the file keep their
        defaults.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the file extension is not recognized.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
