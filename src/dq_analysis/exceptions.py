"""
Exceptions
==========

Error taxonomy for the analysis pipeline.
"""


class DQAnalysisError(Exception):
    """Base exception for data quality analysis errors."""

    pass


class RemoteError(DQAnalysisError):
    """Raised when a call to the remote model fails."""

    pass


class RateLimitError(RemoteError):
    """Raised when the remote model signals rate limiting or quota exhaustion."""

    pass


class RemoteTimeoutError(RemoteError):
    """Raised when the remote model does not answer within the deadline."""

    pass


class ResponseParseError(DQAnalysisError):
    """Raised when a model response is not a well-formed result."""

    pass


class InvalidInputError(DQAnalysisError):
    """Raised when analysis inputs are structurally malformed."""

    pass


class ConfigurationError(DQAnalysisError):
    """Raised when required configuration is missing."""

    pass
