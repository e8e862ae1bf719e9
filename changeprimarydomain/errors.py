from typing import Optional


class DomainChangeError(Exception):
    """Base class for everything this tool raises on purpose."""


class ConfigError(DomainChangeError):
    pass


class TransportError(DomainChangeError):
    """A Directory API call failed (network, HTTP error, retries exhausted)."""

    def __init__(self, operation: str, message: str, status: Optional[int] = None):
        self.operation = operation
        self.status = status
        super().__init__(f"{operation} failed ({status if status else 'no status'}): {message}")


class NotFound(TransportError):
    pass


class MalformedAddress(DomainChangeError, ValueError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"malformed email address: {address!r}")


class UserAbort(DomainChangeError):
    """Operator answered no at a confirmation gate."""


class ConfirmationError(DomainChangeError):
    """Could not read an answer for a confirmation gate."""
