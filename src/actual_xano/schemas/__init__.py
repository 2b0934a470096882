"""
Schemas for the HP export pipeline.

- markers: idempotency note tags (SSOT)
- eligibility: pure filter selecting exportable transactions
- export_payload: Xano payload construction
"""

from .eligibility import filter_eligible, is_eligible
from .export_payload import ExportPayload, build_export_payload, minor_to_major
from .markers import (
    EXPORT_MARKERS,
    PAID_MARKER,
    SUBMITTED_MARKER,
    append_marker,
    has_export_marker,
)

__all__ = [
    "EXPORT_MARKERS",
    "PAID_MARKER",
    "SUBMITTED_MARKER",
    "ExportPayload",
    "append_marker",
    "build_export_payload",
    "filter_eligible",
    "has_export_marker",
    "is_eligible",
    "minor_to_major",
]
