"""
Completion listener interface for scan flows.

The flow that starts an edit session injects exactly one listener; the
session reports the outcome to it without inspecting who hosts it.
"""

from typing import Protocol, runtime_checkable

from src.common.errors import ScanError
from src.scan.types import ScanResult


@runtime_checkable
class ScanListener(Protocol):
    """Receives the outcome of an edit session. Exactly one method is called."""

    def on_scan_finished(self, result: ScanResult) -> None:
        """The user confirmed the edit and the pipeline produced a result."""
        ...

    def on_scan_cancelled(self) -> None:
        """The user cancelled before the pipeline ran."""
        ...

    def on_scan_failed(self, error: ScanError) -> None:
        """The pipeline failed fatally (e.g. the image could not be decoded)."""
        ...
