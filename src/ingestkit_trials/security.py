"""Pre-flight security scanner for trial workbooks.

Rejects byte buffers that cannot be a spreadsheet before any parsing begins.
Checks file extension, emptiness, size, and container magic bytes.
"""

from __future__ import annotations

import logging

from ingestkit_trials.config import TrialImportConfig
from ingestkit_trials.errors import ErrorCode, IngestError

logger = logging.getLogger("ingestkit_trials")

_LARGE_FILE_THRESHOLD_MB = 10

_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

_EXPECTED_MAGIC = {
    ".xlsx": _ZIP_MAGIC,
    ".xlsm": _ZIP_MAGIC,
    ".xls": _OLE2_MAGIC,
}


class TrialFileScanner:
    """Run pre-flight checks on a workbook byte buffer.

    Returns a list of errors/warnings.  Fatal errors (``E_*`` codes) mean
    the buffer should not be processed further.
    """

    def __init__(self, config: TrialImportConfig) -> None:
        self.config = config

    def scan(self, data: bytes, filename: str | None = None) -> list[IngestError]:
        """Run all pre-flight checks.

        *filename* is only used for the extension check; when it is *None*
        the extension check is skipped and any known container is accepted.
        """
        errors: list[IngestError] = []
        suffix: str | None = None

        # --- 1. Extension check ---
        if filename is not None:
            suffix = _suffix(filename)
            allowed = [ext.lower() for ext in self.config.allowed_extensions]
            if suffix not in allowed:
                errors.append(
                    IngestError(
                        code=ErrorCode.E_SECURITY_BAD_EXTENSION,
                        message=(
                            "Please select a valid Excel file "
                            f"({', '.join(allowed)}): {filename}"
                        ),
                        stage="security",
                    )
                )
                return errors

        # --- 2. Empty buffer ---
        size = len(data)
        if size == 0:
            errors.append(
                IngestError(
                    code=ErrorCode.E_PARSE_EMPTY,
                    message="File is empty (0 bytes).",
                    stage="security",
                )
            )
            return errors

        # --- 3. Size limit ---
        max_bytes = self.config.max_file_size_mb * 1024 * 1024
        if size > max_bytes:
            errors.append(
                IngestError(
                    code=ErrorCode.E_SECURITY_TOO_LARGE,
                    message=(
                        f"File size {size} bytes exceeds limit of "
                        f"{max_bytes} bytes ({self.config.max_file_size_mb} MB)"
                    ),
                    stage="security",
                )
            )
            return errors

        # --- 4. Large file warning ---
        if size > _LARGE_FILE_THRESHOLD_MB * 1024 * 1024:
            errors.append(
                IngestError(
                    code=ErrorCode.W_LARGE_FILE,
                    message=(
                        f"File is {size / (1024 * 1024):.1f} MB "
                        f"(> {_LARGE_FILE_THRESHOLD_MB} MB)"
                    ),
                    stage="security",
                    recoverable=True,
                )
            )

        # --- 5. Container magic bytes ---
        if suffix in _EXPECTED_MAGIC:
            expected = [_EXPECTED_MAGIC[suffix]]
        else:
            expected = [_ZIP_MAGIC, _OLE2_MAGIC]
        if not any(data.startswith(magic) for magic in expected):
            errors.append(
                IngestError(
                    code=ErrorCode.E_SECURITY_BAD_MAGIC,
                    message="File content is not a recognised spreadsheet container.",
                    stage="security",
                )
            )
            logger.warning("Rejected buffer %s: bad magic bytes", filename or "<bytes>")

        return errors


def _suffix(filename: str) -> str:
    dot = filename.rfind(".")
    return filename[dot:].lower() if dot != -1 else ""
