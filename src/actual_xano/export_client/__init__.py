"""
Xano export client.

Provides:
- Submit a normalized transaction record (POST /transactions)

Treats Xano errors as loud failures with the API's own message.
"""

from .client import (
    ExportAPIError,
    ExportClient,
    ExportConnectionError,
    ExportError,
    ExportResult,
)

__all__ = [
    "ExportClient",
    "ExportError",
    "ExportAPIError",
    "ExportConnectionError",
    "ExportResult",
]
