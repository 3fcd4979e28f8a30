"""
Error types raised by the email intake pipeline.

Every PipelineError is caught at the EmailProcessor boundary and turned into
a 500 result. ConfigurationError is raised at load time, before any message
is processed.
"""


class ConfigurationError(Exception):
    """Raised when module configuration is invalid or missing."""
    pass


class PipelineError(Exception):
    """Base class for failures of a single pipeline invocation."""
    pass


class ContentUnavailable(PipelineError):
    """Raised when neither inline content nor an S3 reference is present."""

    def __init__(self, message: str = "Unable to retrieve email content"):
        super().__init__(message)


class UpstreamFailure(PipelineError):
    """Raised when S3, GitHub or SES rejects a call."""
    pass


class MalformedInput(PipelineError):
    """Raised when the notification or the raw message cannot be parsed."""
    pass
