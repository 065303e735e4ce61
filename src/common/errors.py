"""Exceptions raised by the scanning core."""

from typing import Optional


class ScanError(Exception):
    """Base exception for all scanning core errors.

    Attributes:
        message: Human-readable error description
        error_code: Optional error code for programmatic handling
    """

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ImageDecodingError(ScanError):
    """The source image cannot be interpreted as a pixel buffer.

    Fatal to the scan attempt: no partial result is produced.

    Attributes:
        source: Short description of what was being decoded (if known)
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message, error_code="IMAGE_DECODING")
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"{super().__str__()} (source: {self.source})"
        return super().__str__()


class CoordinateSpaceError(ScanError, ValueError):
    """Geometry from one coordinate space was handed to an operation expecting another."""

    def __init__(self, message: str):
        super().__init__(message, error_code="COORDINATE_SPACE")
