"""
Error taxonomy for the Portfolio API

Callers only ever see a coarse success/failure signal; the fields carried
here are for operator-facing logs.
"""

from typing import Any, Dict, Optional


class PortfolioError(Exception):
    """Base exception for all portfolio errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
            "exception_type": self.__class__.__name__,
        }


class Unauthorized(PortfolioError):
    """Missing or invalid admin identity"""

    status_code = 401

    def __init__(self, message: str = "Not authenticated", **kwargs):
        super().__init__(message, error_code="UNAUTHORIZED", **kwargs)


class ValidationFailure(PortfolioError):
    """Malformed input shape"""

    status_code = 400

    def __init__(self, message: str = "Invalid request", **kwargs):
        super().__init__(message, error_code="VALIDATION_FAILURE", **kwargs)


class NotFound(PortfolioError):
    """Operation targets a record that does not exist"""

    status_code = 404

    def __init__(self, message: str = "Not found", **kwargs):
        super().__init__(message, error_code="NOT_FOUND", **kwargs)


class StorageFailure(PortfolioError):
    """Raised when a persistence operation fails"""

    status_code = 500

    def __init__(
        self,
        message: str = "Storage failure",
        operation: str = "unknown",
        **kwargs,
    ):
        super().__init__(message, error_code="STORAGE_FAILURE", **kwargs)
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict["operation"] = self.operation
        return base_dict
