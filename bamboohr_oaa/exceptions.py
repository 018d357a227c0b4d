"""
Exceptions - Typed errors raised by the BambooHR client.

  IntegrationConfigError       The configured client namespace could not be
                               parsed. Raised at client construction.
  StatusError                  An HTTP response carried an unexpected status.
  ProviderAuthenticationError  The authentication probe failed, for any
                               reason (bad status or transport failure).
"""

from typing import Optional


class BambooHRError(Exception):
    """Base exception for all BambooHR connector errors."""
    pass


class IntegrationConfigError(BambooHRError, ValueError):
    """Invalid connector configuration (e.g., an unparseable namespace)."""
    pass


class StatusError(BambooHRError):
    """Unexpected HTTP status from the BambooHR API.

    Attributes:
        status_code: HTTP status code
        status_text: HTTP reason phrase
    """

    def __init__(self, message: str, status_code: int, status_text: str):
        self.status_code = status_code
        self.status_text = status_text
        super().__init__(f"{message} [{status_code} {status_text}]")


class ProviderAuthenticationError(BambooHRError):
    """Authentication against BambooHR failed.

    Attributes:
        cause: The underlying exception (StatusError or transport error)
        endpoint: Full URL of the authentication probe
        status: HTTP status code, or -1 when no response was received
        status_text: HTTP reason phrase, or "" when no response was received
    """

    def __init__(
        self,
        cause: Optional[BaseException],
        endpoint: str,
        status: int = -1,
        status_text: str = "",
    ):
        self.cause = cause
        self.endpoint = endpoint
        self.status = status
        self.status_text = status_text
        super().__init__(
            f"Provider authentication failed at {endpoint}: {status} {status_text}".rstrip()
        )
