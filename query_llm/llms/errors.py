from typing import Optional


class TransportError(Exception):
    """Raised when a completion cannot be obtained from the LLM service."""


class HttpStatusError(TransportError):
    """Raised for a non-2xx response. Not retried."""

    def __init__(self, status_code: int, reason: str = "", body: str = ""):
        super().__init__(f"HTTP error with the status: {status_code} {reason}".rstrip())
        self.status_code = status_code
        self.reason = reason
        self.body = body


class RequestTimeoutError(TransportError):
    """Raised when the HTTP exchange exceeds its deadline. Retried."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout


class EvalError(TransportError):
    """Raised when a response envelope cannot be evaluated. Retried."""


__all__ = [
    "TransportError",
    "HttpStatusError",
    "RequestTimeoutError",
    "EvalError",
]
