from typing import Any, Callable, Dict, List, Optional, Union

from query_llm.core.schemas import Message
from query_llm.llms.base import BaseLLM
from query_llm.utils.logger import get_logger

logger = get_logger(__name__)

Script = Union[str, Callable[[List[Message], Optional[Dict[str, Any]]], str]]


class MockLLMClient(BaseLLM):
    """
    Scripted LLM client for tests and offline runs.

    Each call consumes the next scripted completion (a string, or a callable
    receiving the messages and schema). Every call is recorded in `calls`.
    """

    def __init__(self, completions: Optional[List[Script]] = None, default: str = ""):
        self.completions = list(completions or [])
        self.default = default
        self.calls: List[Dict[str, Any]] = []

    async def complete(
        self,
        messages: List[Message],
        schema: Optional[Dict[str, Any]] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> str:
        self.calls.append({"messages": list(messages), "schema": schema, "streamed": on_chunk is not None})

        script = self.completions.pop(0) if self.completions else self.default
        completion = script(messages, schema) if callable(script) else script
        logger.debug(f"Mock completion #{len(self.calls)}: {completion[:80]}")

        if completion and on_chunk:
            on_chunk(completion)
        return completion
