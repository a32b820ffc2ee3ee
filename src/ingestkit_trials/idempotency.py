"""Deterministic ingest-key computation for deduplication.

:func:`compute_ingest_key` hashes the raw workbook bytes together with the
parser version and optional identifiers.  The package provides the key but
does not enforce any deduplication policy; that belongs to the caller.
"""

from __future__ import annotations

import hashlib

from ingestkit_trials.models import IngestKey


def compute_ingest_key(
    data: bytes,
    parser_version: str,
    tenant_id: str | None = None,
    source_uri: str | None = None,
) -> IngestKey:
    """Compute a deterministic ingest key for a workbook byte buffer.

    Parameters
    ----------
    data:
        Raw bytes of the workbook.
    parser_version:
        Parser version string (e.g. ``"ingestkit_trials:1.0.0"``).
    tenant_id:
        Optional tenant identifier for multi-tenant scenarios.
    source_uri:
        Optional source URI stored in the key.  When *None*, a
        content-addressed ``sha256:<digest>`` URI is used so the key depends
        on the bytes alone.

    Returns
    -------
    IngestKey
        A populated key whose ``.key`` property yields the composite digest.
    """
    content_hash = hashlib.sha256(data).hexdigest()

    if source_uri is None:
        source_uri = f"sha256:{content_hash}"

    return IngestKey(
        content_hash=content_hash,
        source_uri=source_uri,
        parser_version=parser_version,
        tenant_id=tenant_id,
    )
