"""
Custom exception hierarchy for the configuration registry.

This module defines standardized error codes, messages, and categorization
for the errors that can occur while building and reading configurations.
"""
from contextlib import contextmanager
from enum import Enum
import logging
from typing import Optional, Dict, Any, Type
import uuid

from utils.error_logging import system_error_logger


class ErrorCode(Enum):
    """
    Enumeration of error codes for standardized error handling.

    Error codes are grouped by category for easier identification:
    - 1xx: Configuration errors
    - 2xx: Lookup errors
    - 3xx: Source errors
    - 4xx: Script errors
    - 9xx: Uncategorized/system errors
    """
    # Configuration errors (1xx)
    INVALID_CONFIG = 102
    CONFIG_VALIDATION_ERROR = 105
    NAMESPACE_CONFLICT = 106

    # Lookup errors (2xx)
    UNDEFINED_VARIABLE = 201
    KEY_NOT_FOUND = 202

    # Source errors (3xx)
    SOURCE_NOT_FOUND = 301
    SOURCE_READ_ERROR = 302

    # Script errors (4xx)
    SCRIPT_SYNTAX_ERROR = 401
    SCRIPT_EXECUTION_ERROR = 402
    SCRIPT_UNSUPPORTED_STATEMENT = 403

    # Uncategorized/system errors (9xx)
    UNKNOWN_ERROR = 901


class GroupConfigError(Exception):
    """
    Base exception class for all configuration registry errors.

    All other custom exceptions inherit from this class, allowing for
    standardized error handling throughout the system.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a new GroupConfigError.

        Args:
            message: Human-readable error message
            code: Error code from the ErrorCode enum
            details: Additional error details for debugging or logging
        """
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"


class ConfigError(GroupConfigError):
    """Exception raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INVALID_CONFIG,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


class UndefinedVariableError(GroupConfigError, AttributeError):
    """Exception raised when reading a setting that was never set."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNDEFINED_VARIABLE,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


class KeyNotFoundError(GroupConfigError, KeyError):
    """Exception raised when unsetting a key that is not present."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.KEY_NOT_FOUND,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


class SourceNotFoundError(GroupConfigError):
    """Exception raised when a required source does not exist."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SOURCE_NOT_FOUND,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


class ScriptExecutionError(GroupConfigError):
    """
    Exception raised for syntax or runtime errors in a loaded source.

    Statements applied before the failing one are not rolled back.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SCRIPT_EXECUTION_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


@contextmanager
def error_context(
    component_name: str,
    operation: Optional[str] = None,
    error_class: Type[GroupConfigError] = GroupConfigError,
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
    details: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None
):
    """
    Context manager for standardized error handling across the system.

    Errors that already belong to the hierarchy are logged and re-raised
    unchanged. Anything else is wrapped in ``error_class``.

    Args:
        component_name: Name of the component (for error messages)
        operation: Description of the operation (for error messages)
        error_class: The GroupConfigError subclass to use for wrapping
        error_code: Error code to use for foreign exceptions
        details: Extra details merged into the wrapped error
        logger: Logger to use (if None, creates a new one)

    Yields:
        Control to the wrapped code block

    Raises:
        GroupConfigError: With appropriate error information
    """
    if logger is None:
        logger = logging.getLogger(f"error.{component_name}")

    try:
        yield
    except GroupConfigError as e:
        # Each error is logged once, by the innermost context it passes through
        if "error_id" not in e.details:
            error_id = str(uuid.uuid4())
            e.details["error_id"] = error_id
            system_error_logger.error(f"[{error_id}] {component_name} - {e}")
        raise
    except Exception as e:
        error_id = str(uuid.uuid4())

        error_msg = f"Error in {component_name}"
        if operation:
            error_msg += f" during {operation}"

        error_string = str(e)
        wrapped_details = dict(details or {})
        wrapped_details.update({
            "original_error": error_string,
            "error_type": type(e).__name__,
            "error_id": error_id,
        })

        logger.debug(f"[{error_id}] wrapping {type(e).__name__}: {error_string}")
        system_error_logger.error(f"[{error_id}] {error_msg}: {error_string}")

        raise error_class(
            f"{error_msg}: {error_string}",
            error_code,
            wrapped_details
        ) from e
