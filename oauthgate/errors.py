"""Exceptions raised by the OAuth login flow.

Every error carries an optional ``error_code``: the machine-readable value the
flow handlers put in the ``error`` query parameter of the login redirect. The
message is for logs only and never reaches the browser.
"""
from typing import Optional


class AuthFlowError(Exception):
    """Base exception for all oauthgate errors.

    Attributes:
        message: Human-readable error description.
        error_code: Redirect error tag, if the error is recoverable.
    """

    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the error message, optionally including the error code."""
        if self.error_code:
            return f"{self.message} [{self.error_code}]"
        return self.message


class ConfigurationError(AuthFlowError):
    """Raised at construction time for missing credentials or a bad base URL."""
    pass


class StateError(AuthFlowError):
    """Raised when the CSRF state is missing from the session or does not match."""
    pass


class CodeExchangeError(AuthFlowError):
    """Raised when the callback carries no code or the provider rejects it."""
    pass


class ProfileFetchError(AuthFlowError):
    """Raised when the userinfo endpoint fails or returns an unusable body."""
    pass


class SessionPersistenceError(AuthFlowError):
    """Raised when the session cannot be serialised or signed into a cookie."""
    pass


class EntropyError(AuthFlowError):
    """Raised when the random source cannot produce a state token."""
    pass
