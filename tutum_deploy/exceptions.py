"""Custom exceptions for tutum-deploy."""


class DeployError(Exception):
    """Base exception for all deployment errors."""

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class ConfigurationError(DeployError):
    """Exception raised for configuration errors."""

    pass


class ConfigReadError(ConfigurationError):
    """The configuration file is missing or unreadable."""

    pass


class TemplateError(ConfigurationError):
    """A placeholder in the configuration has no environment value."""

    pass


class ConfigParseError(ConfigurationError):
    """The configuration is malformed or misses required sections."""

    pass


class RemoteError(DeployError):
    """Exception raised for Tutum API errors."""

    pass


class TransportError(RemoteError):
    """The request never produced an HTTP response."""

    pass


class UnexpectedStatusError(RemoteError):
    """The API answered with a status other than the expected one."""

    def __init__(self, operation: str, status_code: int, text: str):
        self.operation = operation
        self.status_code = status_code
        self.text = text
        super().__init__(f"error {operation}: {text}", f"HTTP status {status_code}")


class RemoteStateError(RemoteError):
    """A remote entity is in a state the workflow cannot continue from."""

    pass


class SettleTimeoutError(RemoteError):
    """A remote entity did not reach the expected state in time."""

    pass


class ResolutionError(DeployError):
    """A name in the configuration could not be resolved remotely."""

    pass


class DependencyNotFoundError(ResolutionError):
    """A required service has no remote record to link to."""

    pass


class ImageBuildError(DeployError):
    """Exception raised when docker build or push fails."""

    pass


class BatchAbortedError(DeployError):
    """A batch step failed and the remaining steps were skipped."""

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        reason = cause.message if isinstance(cause, DeployError) else str(cause)
        details = cause.details if isinstance(cause, DeployError) else None
        super().__init__(f"{step} failed: {reason}", details)
