"""
Shared error handling for the Google Analytics exporter.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class ExporterException(Exception):
    """Base exception for the exporter."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(ExporterException):
    """Unreadable or invalid exporter configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class CredentialsError(ExporterException):
    """Unreadable or incomplete service-account credentials."""

    def __init__(self, message: str = "Invalid credentials", details: Optional[Dict[str, Any]] = None):
        super().__init__("CREDENTIALS_ERROR", message, details)


class RegistrationError(ExporterException):
    """A series could not be registered for a reason other than prior registration."""

    def __init__(self, name: str, message: str = "Series registration failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("REGISTRATION_ERROR", f"{name}: {message}", details)
        self.name = name


class DataSourceError(ExporterException):
    """The realtime data source returned an error or could not be reached."""

    def __init__(self, metric: str, message: str = "Data source error", details: Optional[Dict[str, Any]] = None):
        super().__init__("DATA_SOURCE_ERROR", f"{metric}: {message}", details)
        self.metric = metric


class AuthenticationError(ExporterException):
    """Token exchange with the credentials endpoint failed."""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)
