from .exceptions import (
    AWSChecksError,
    ConfigurationError,
    ValidationError,
    SessionError,
    CheckError,
)

__all__ = [
    "AWSChecksError",
    "ConfigurationError",
    "ValidationError",
    "SessionError",
    "CheckError",
]
