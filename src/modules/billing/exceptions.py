"""Billing error taxonomy.

Everything raised here is raised before or instead of a durable ledger
write, so a failed event can be retried by provider redelivery. Problems
that happen after the write are reported as
``ScheduleReconciliationWarning`` values on the handler result instead.
"""


class BillingError(Exception):
    """Base class for billing workflow failures."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(BillingError):
    """Missing, malformed or unknown event input."""


class NotFoundError(BillingError):
    """No ledger entry exists for the event target."""


class StorageError(BillingError):
    """The ledger store rejected a read or append."""


class UpstreamError(BillingError):
    """A payment provider call failed."""


class ProviderError(UpstreamError):
    """The provider answered with a non-success response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
        provider_message: str | None = None,
    ):
        self.status_code = status_code
        self.error_type = error_type
        self.provider_message = provider_message
        super().__init__(
            message, details={"status_code": status_code, "error_type": error_type}
        )


class TransportError(UpstreamError):
    """The provider could not be reached (timeout, connection failure)."""
