class AWSChecksError(Exception):
    """Base exception for aws_checks package."""

    pass


class ConfigurationError(AWSChecksError):
    """Raised when there's a configuration error."""

    pass


class ValidationError(AWSChecksError):
    """Raised when validation fails."""

    pass


class SessionError(AWSChecksError):
    """Raised when session operations fail."""

    pass


class CheckError(AWSChecksError):
    """Raised when a check cannot be carried out."""

    pass
