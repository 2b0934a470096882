"""
Idempotency marker constants and utilities (SSOT).

This module defines THE single source of truth for the note tags written
onto Actual transactions once they have been exported to Xano.

Markers:
1. SUBMITTED_MARKER: "#HP-Submitted" - transaction was submitted to Xano
2. PAID_MARKER: "#HP-Paid" - the submitted expense was reimbursed

A transaction is "exported" if its notes contain EITHER marker, anywhere in
the string. Markers are appended to the existing notes with a single space.
"""

SUBMITTED_MARKER = "#HP-Submitted"
PAID_MARKER = "#HP-Paid"

EXPORT_MARKERS = (SUBMITTED_MARKER, PAID_MARKER)


def has_export_marker(notes: str | None) -> bool:
    """
    Check if transaction notes carry any export marker.

    Args:
        notes: Transaction notes (None is treated as empty)

    Returns:
        True if the submitted or paid marker is present
    """
    if not notes:
        return False
    return any(marker in notes for marker in EXPORT_MARKERS)


def append_marker(notes: str | None, marker: str) -> str:
    """
    Append a marker to notes, keeping the existing text.

    Returns the notes unchanged if the marker is already present.

    Examples:
        append_marker(None, "#HP-Submitted") → "#HP-Submitted"
        append_marker("Office chair", "#HP-Submitted") → "Office chair #HP-Submitted"
    """
    current = notes or ""
    if marker in current:
        return current
    return f"{current} {marker}" if current else marker
