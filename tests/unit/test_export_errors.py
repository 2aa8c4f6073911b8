"""Tests for the export exception hierarchy."""

from notebook_export.lib.errors import ConfigurationError, ExportError, NotebookExportError


def test_export_error_plain_message():
    error = ExportError("Something failed")

    assert str(error) == "Something failed"
    assert error.to_dict()["error_type"] == "ExportError"


def test_export_error_includes_context():
    error = ExportError(
        "Something failed",
        notebook_id="0-ABC",
        details={"pages": 3},
        suggestion="Try again",
    )

    text = str(error)
    assert text.startswith("[0-ABC]")
    assert "pages: 3" in text
    assert "Suggestion: Try again" in text
    assert error.to_dict()["message"] == "Something failed"


def test_configuration_error_records_field():
    error = ConfigurationError("Bad value", field="retry.max_attempts", value=0)

    assert isinstance(error, ExportError)
    assert error.details == {"field": "retry.max_attempts", "value": "0"}


def test_notebook_export_error_wraps_cause():
    cause = TimeoutError("application did not answer")

    error = NotebookExportError("Export raised", notebook_id="0-ABC", export_format="md", cause=cause)

    assert error.cause is cause
    assert error.details["cause_type"] == "TimeoutError"
    assert error.details["export_format"] == "md"
    assert "previous export timestamp" in error.suggestion
