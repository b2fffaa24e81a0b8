"""Error types for capfetch.

Token, pattern and option problems raise InvalidParameter (or one of its
subclasses). Collaborator problems raise ApplicationError, NetworkError or
ProtocolFailure. None of them ever carry private key material.
"""

from typing import Any, Dict, Optional


class CapfetchError(Exception):
    """Base exception for capfetch failures.

    Attributes:
        message: Error description.
        cause: Optional underlying exception being wrapped.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        """Initialize CapfetchError.

        Args:
            message: Description of the error.
            cause: Optional exception that triggered this error.
        """
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvalidParameter(CapfetchError):
    """Malformed or out-of-policy input.

    Covers token format, expired tokens, bad URL patterns, disallowed URLs,
    signature mismatches and bad expiry bounds.

    Attributes:
        message: Description of the error.
        field: Optional name of the offending field.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.field = field


class DisallowedOption(InvalidParameter):
    """A request option that callers are not permitted to set."""

    def __init__(self, option: str):
        super().__init__(f"Option: {option} is not allowed", field=option)
        self.option = option


class InvalidMethod(InvalidParameter):
    """HTTP method outside the supported set."""

    def __init__(self, method: str):
        super().__init__(f"Method {method} is not allowed", field="method")
        self.method = method


class ApplicationError(CapfetchError):
    """Application registration lookup failed.

    Attributes:
        message: Description of the error.
        application_id: Optional application the lookup was for.
    """

    def __init__(self, message: str, application_id: Optional[str] = None):
        super().__init__(message)
        self.application_id = application_id


class NetworkError(CapfetchError):
    """Transport failure while talking to a collaborator.

    Attributes:
        message: Description of the error.
        url: Optional URL of the collaborator.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.url = url


class ProtocolFailure(CapfetchError):
    """The proof collaborator reported an error in its response.

    Attributes:
        message: Description of the error.
        details: Raw error object returned by the collaborator.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}
