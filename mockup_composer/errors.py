"""
Error handling for Mockup Composer.

Provides specific exception types for the composition failure modes
and enough context for the caller to decide whether to ask the user
to retry.
"""

from typing import Dict, List, Any


class MockupComposerError(Exception):
    """Base exception for all Mockup Composer errors."""

    def __init__(self, message: str, details: Dict[str, Any] = None, suggestions: List[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
            'suggestions': self.suggestions
        }


class ValidationError(MockupComposerError):
    """Raised when a composition request is malformed."""
    pass


class ConfigurationError(MockupComposerError):
    """Raised when configuration is invalid or missing."""
    pass


class ProcessingError(MockupComposerError):
    """Raised when the composition pipeline fails."""
    pass


class RenderError(ProcessingError):
    """Raised when painting onto a raster canvas fails."""
    pass


# Specific error classes for common failure modes

class InvalidPlacementCountError(ValidationError):
    """Raised when the placement list does not match the design image list."""

    def __init__(self, design_count: int, placement_count: int):
        super().__init__(
            f"Expected {design_count} design placements, got {placement_count}",
            details={
                'design_count': design_count,
                'placement_count': placement_count
            },
            suggestions=[
                "Send exactly one placement per design image, in the same order",
                "Re-open the editor so every design gets a position, size and rotation"
            ]
        )


class ImageLoadError(ProcessingError):
    """Raised when the base image or a design image cannot be decoded."""

    def __init__(self, source_label: str, reason: str, index: int = None):
        super().__init__(
            f"Failed to load {source_label}: {reason}",
            details={
                'source': source_label,
                'index': index,
                'reason': reason
            },
            suggestions=[
                "Use PNG or JPEG images",
                "Ensure the file is not corrupted",
                "Upload the image again"
            ]
        )


class CanvasUnavailableError(RenderError):
    """Raised when a raster canvas of the requested size cannot be allocated."""

    def __init__(self, size, reason: str):
        width, height = size
        super().__init__(
            f"Could not allocate a {width}x{height} canvas: {reason}",
            details={
                'width': width,
                'height': height,
                'reason': reason
            },
            suggestions=[
                "Use a smaller product photo",
                "Raise MAX_CANVAS_PIXELS if the host has enough memory"
            ]
        )


def status_code_for(error: Exception) -> int:
    """HTTP status for an error raised by the composition pipeline."""
    if isinstance(error, (ValidationError, ImageLoadError)):
        return 400
    return 500
