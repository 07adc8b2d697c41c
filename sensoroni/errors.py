# ============================================================================
# sensoroni/errors.py
# Structured error taxonomy for the analyze engine
# ============================================================================
#
# PURPOSE:
# Every failure the engine surfaces carries a searchable code, a message and
# an optional details dictionary. Per-analyzer failures are not raised; they
# ride along on the ExecutionOutcome as a SensoroniError value.
#
# ERROR CODE FORMAT:
# - CONFIG_XXX: Configuration errors
# - ANALYZE_XXX: Stage and bootstrap errors (raised to the host)
# - ANALYZER_XXX: Single analyzer errors (contained, logged)
#
# USAGE:
#   from sensoroni.errors import SensoroniError, ErrorCode
#
#   raise SensoroniError(
#       ErrorCode.ANALYZE_NO_SUCCESS,
#       "No analyzers processed successfully",
#       details={"job_id": job.id},
#   )
#
# ============================================================================

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    # Config Errors
    CONFIG_INVALID = "CONFIG_001"
    CONFIG_FILE_NOT_FOUND = "CONFIG_002"
    CONFIG_PARSE_ERROR = "CONFIG_003"

    # Stage / bootstrap errors
    ANALYZE_NO_ANALYZERS_LOADED = "ANALYZE_001"
    ANALYZE_REGISTRATION_FAILED = "ANALYZE_002"
    ANALYZE_NO_SUCCESS = "ANALYZE_003"

    # Single analyzer errors
    ANALYZER_DESCRIPTOR_INVALID = "ANALYZER_001"
    ANALYZER_INSTALL_FAILED = "ANALYZER_002"
    ANALYZER_EXEC_FAILED = "ANALYZER_003"
    ANALYZER_TIMEOUT = "ANALYZER_004"
    ANALYZER_LAUNCH_FAILED = "ANALYZER_005"


class SensoroniError(Exception):
    """
    Base exception for the analyze engine with structured error information.

    Attributes:
        code: ErrorCode enum value (e.g., "ANALYZE_003")
        message: Human-readable error message
        details: Optional dictionary with additional context
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}

        # Build exception message with code for easy debugging
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


def handle_error(error: Exception, context: Optional[str] = None) -> SensoroniError:
    """
    Convert a generic exception to a SensoroniError.

    Args:
        error: The original exception
        context: Optional context string (e.g., "while launching whois")

    Returns:
        SensoroniError with appropriate code and message
    """
    if isinstance(error, SensoroniError):
        return error

    error_type = type(error).__name__

    if isinstance(error, TimeoutError) or "Timeout" in error_type:
        code = ErrorCode.ANALYZER_TIMEOUT
    elif isinstance(error, OSError):
        code = ErrorCode.ANALYZER_LAUNCH_FAILED
    else:
        code = ErrorCode.ANALYZER_EXEC_FAILED

    message = str(error) or error_type
    if context:
        message = f"{context}: {message}"

    return SensoroniError(
        code=code,
        message=message,
        details={
            "original_type": error_type,
            "original_message": str(error),
        },
    )


__all__ = ["ErrorCode", "SensoroniError", "handle_error"]
