from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional
from query_llm.core.schemas import Message

class BaseLLM(ABC):
    """Base class for LLM clients."""

    @abstractmethod
    async def complete(
        self,
        messages: List[Message],
        schema: Optional[Dict[str, Any]] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> str:
        """Produce the completion text for these messages.

        When `on_chunk` is given it receives the completion, either as
        streamed fragments or once as the whole text.
        """
        pass
