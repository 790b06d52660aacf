import json
import tiktoken
from typing import Any, Dict, List, Optional
from query_llm.core.schemas import Message

# cl100k_base matches the default chat model; for other models and for the
# Gemini API the counts below are an estimate only.
_encoding = None

def get_encoding():
    """Get or initialize the tiktoken encoding."""
    global _encoding
    if _encoding is None:
        _encoding = tiktoken.get_encoding("cl100k_base")
    return _encoding


def count_tokens(text: str) -> int:
    """
    Count tokens in a single text string.

    Args:
        text: The text to count tokens for

    Returns:
        Number of tokens
    """
    if not text:
        return 0

    encoding = get_encoding()
    return len(encoding.encode(text))


def count_messages_tokens(messages: List[Message], schema: Optional[Dict[str, Any]] = None) -> int:
    """
    Estimate the prompt size of one completion request.

    A stage request is a system prompt, replayed history turns, the inquiry
    and, in plain-text mode, a priming assistant fragment such as
    "tool: Google\\nthought: ". The priming fragment is counted like any other
    message. In JSON mode the response schema travels with the request and
    is counted as its serialized text.

    Args:
        messages: Messages of the request, in order
        schema: Optional JSON Schema sent alongside

    Returns:
        Estimated number of prompt tokens
    """
    if not messages:
        return 0

    encoding = get_encoding()
    num_tokens = 0

    for message in messages:
        # Chat framing around each message: start, role separator, end, newline
        num_tokens += 4 + len(encoding.encode(message.role)) + len(encoding.encode(message.content))

    # The reply slot opened after the last message
    num_tokens += 3

    if schema:
        num_tokens += count_tokens(json.dumps(schema))

    return num_tokens
