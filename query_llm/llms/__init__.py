"""LLM providers: base interface, HTTP completion client, mock client for testing."""

from .base import BaseLLM
from .errors import TransportError, HttpStatusError, RequestTimeoutError, EvalError
from .http_client import CompletionClient
from .mock_client import MockLLMClient

__all__ = [
    "BaseLLM",
    "CompletionClient",
    "MockLLMClient",
    "TransportError",
    "HttpStatusError",
    "RequestTimeoutError",
    "EvalError",
]
