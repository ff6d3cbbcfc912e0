"""
Error types for Manifold.

Every public operation raises one of these. None of the components
catch each other's errors; turning them into console output or an
exit code is left to the CLI.
"""
from typing import Any, Dict, Optional


class ManifoldError(Exception):
    """Base exception for all Manifold errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}'"
            f")"
        )


class ArgumentError(ManifoldError, ValueError):
    """Invalid or missing input to a public operation."""

    def __init__(
        self,
        message: str,
        error_code: str = "ARGUMENT_ERROR",
        details: Optional[Dict[str, Any]] = None,
        argument: Optional[str] = None,
    ):
        super().__init__(message, error_code, details)
        self.argument = argument
        if argument:
            self.details["argument"] = argument


class NotFoundError(ManifoldError):
    """A snapshot (or manifest file) could not be found."""

    def __init__(
        self,
        message: str,
        error_code: str = "NOT_FOUND",
        details: Optional[Dict[str, Any]] = None,
        location: Optional[str] = None,
    ):
        super().__init__(message, error_code, details)
        self.location = location
        if location:
            self.details["location"] = location


class FormatError(ManifoldError):
    """Persisted content could not be parsed into a well-formed value."""

    def __init__(
        self,
        message: str,
        error_code: str = "FORMAT_ERROR",
        details: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ):
        super().__init__(message, error_code, details)
        self.source = source
        if source:
            self.details["source"] = source
