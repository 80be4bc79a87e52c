class ServiceError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str) -> None:
        """Store the human-readable failure reason."""
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed input such as an empty message or a duplicate e-mail."""

    status_code = 400
    code = "validation_error"


class NotFoundError(ServiceError):
    """Requested thread history or user is not known locally."""

    status_code = 404
    code = "not_found"


class UpstreamError(ServiceError):
    """The assistant service call failed (transport, auth, 4xx/5xx)."""

    status_code = 502
    code = "upstream_error"

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        """Keep the upstream HTTP status next to the message when known."""
        super().__init__(message)
        self.upstream_status = upstream_status


class RunFailedError(ServiceError):
    """An assistant run ended in a failure state."""

    status_code = 502
    code = "run_failed"


class RunTimeoutError(ServiceError):
    """An assistant run did not finish within the wait budget.

    The run may still complete upstream; only the waiting stopped.
    """

    status_code = 504
    code = "run_timeout"
