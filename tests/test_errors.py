"""
Unit tests for the error handling system.

Tests custom exception classes, error context, suggestions
and HTTP status mapping.
"""

import pytest
from mockup_composer.errors import (
    MockupComposerError, ValidationError, ProcessingError, RenderError,
    InvalidPlacementCountError, ImageLoadError, CanvasUnavailableError,
    status_code_for
)


class TestMockupComposerError:
    """Test the base MockupComposerError class."""

    def test_basic_error_creation(self):
        """Test creating a basic error with message only."""
        error = MockupComposerError("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details == {}
        assert error.suggestions == []

    def test_error_with_details_and_suggestions(self):
        """Test creating an error with details and suggestions."""
        details = {'index': 2, 'source': 'design image 3'}
        suggestions = ['Try this', 'Or try that']

        error = MockupComposerError("Test error", details=details, suggestions=suggestions)

        assert error.details == details
        assert error.suggestions == suggestions

    def test_error_to_dict(self):
        """Test converting error to dictionary."""
        error = MockupComposerError("Test", details={'key': 'value'}, suggestions=['suggestion'])

        result = error.to_dict()

        assert result['error_type'] == 'MockupComposerError'
        assert result['message'] == 'Test'
        assert result['details'] == {'key': 'value'}
        assert result['suggestions'] == ['suggestion']


class TestSpecificErrorTypes:
    """Test specific error type implementations."""

    def test_invalid_placement_count_error(self):
        error = InvalidPlacementCountError(design_count=3, placement_count=2)

        assert "Expected 3 design placements, got 2" in str(error)
        assert error.details == {'design_count': 3, 'placement_count': 2}
        assert isinstance(error, ValidationError)
        assert len(error.suggestions) > 0

    def test_image_load_error(self):
        error = ImageLoadError("design image 2", "unrecognised image format", index=1)

        assert str(error) == "Failed to load design image 2: unrecognised image format"
        assert error.details['index'] == 1
        assert error.details['source'] == "design image 2"
        assert isinstance(error, ProcessingError)

    def test_canvas_unavailable_error(self):
        error = CanvasUnavailableError((40000, 30000), "exceeds the 100 pixel limit")

        assert "40000x30000" in str(error)
        assert error.details['width'] == 40000
        assert error.details['height'] == 30000
        assert isinstance(error, RenderError)

    def test_error_inheritance(self):
        assert issubclass(ValidationError, MockupComposerError)
        assert issubclass(RenderError, ProcessingError)
        assert issubclass(CanvasUnavailableError, ProcessingError)


class TestStatusCodes:
    """Caller mistakes map to 400, environment failures to 500."""

    @pytest.mark.parametrize("error, expected", [
        (ValidationError("bad"), 400),
        (InvalidPlacementCountError(2, 1), 400),
        (ImageLoadError("product image", "truncated"), 400),
        (CanvasUnavailableError((1, 1), "out of memory"), 500),
        (ProcessingError("boom"), 500),
    ])
    def test_status_code_for(self, error, expected):
        assert status_code_for(error) == expected
