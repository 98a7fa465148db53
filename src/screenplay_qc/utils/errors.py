"""
Error handling utilities for the screenplay post-processing pipeline.

The pipeline itself never raises on well-formed text: detectors report zero
counts and the only caller-visible failure is a hard reject. These exceptions
cover caller-contract misuse (wrong argument types, invalid settings).
"""

import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize pipeline error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error the way the CLI reports it."""
        payload = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(PipelineError):
    """Raised when an argument passed to the pipeline is invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details
        )


class ConfigurationError(PipelineError):
    """Raised when pipeline settings cannot be parsed or are out of range."""

    def __init__(self, setting: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid setting '{setting}' ({value!r}): {reason}",
            error_code="CONFIGURATION_ERROR",
            details={"setting": setting, "value": value}
        )


def create_error_response(error: Exception, include_traceback: bool = False) -> Dict[str, Any]:
    """
    Create a standardized error payload.

    Args:
        error: Exception instance
        include_traceback: Whether to include the exception type for debugging

    Returns:
        Dict suitable for JSON output
    """
    logger.error(f"Error: {type(error).__name__}: {str(error)}", exc_info=include_traceback)

    if isinstance(error, PipelineError):
        return error.to_dict()

    response = {
        "error": "An unexpected error occurred while processing the sequence.",
        "error_code": "INTERNAL_ERROR",
    }
    if include_traceback:
        response["error"] = str(error)
        response["error_type"] = type(error).__name__
    return response


def require_text(value: Any, field: str = "content") -> str:
    """
    Ensure a value is a string before it reaches the text passes.

    Args:
        value: Value supplied by the caller
        field: Argument name used in the error message

    Returns:
        The value unchanged

    Raises:
        ValidationError: If the value is not a string
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field}' must be a string, got {type(value).__name__}",
            details={"field": field},
        )
    return value


def require_probability(value: float, field: str) -> float:
    """
    Ensure a probability lies in [0, 1].

    Raises:
        ValidationError: If the value is outside the range
    """
    if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
        raise ValidationError(
            f"'{field}' must be a probability between 0 and 1, got {value!r}",
            details={"field": field, "value": value},
        )
    return float(value)
