"""
Reply Module

Zero-shot stage: answers the inquiry directly from the recent conversation.
"""

from typing import List, Optional

from query_llm.core.schemas import Context, Message
from query_llm.llms.base import BaseLLM
from query_llm.utils.config import Config, get_config
from query_llm.utils.logger import get_logger

logger = get_logger(__name__)

# Number of past turns replayed as user/assistant pairs
REPLY_HISTORY_SIZE = 5


async def reply(context: Context, llm: BaseLLM, config: Optional[Config] = None) -> Context:
    """
    Reply to the user in a single completion.

    Args:
        context: Current pipeline context
        llm: LLM client to use
        config: Configuration (defaults to the global one)

    Returns:
        Updated context carrying `answer`
    """
    config = config or get_config()
    delegates = context.delegates
    if delegates.enter:
        delegates.enter("Reply")

    logger.info(f"Reply: '{context.inquiry[:50]}' with {len(context.recent(REPLY_HISTORY_SIZE))} past turns")

    messages = _build_reply_messages(context, config)
    answer = await llm.complete(messages, None, delegates.stream)

    if delegates.leave:
        delegates.leave("Reply", {"inquiry": context.inquiry, "answer": answer})
    return context.overlay(answer=answer)


def _build_reply_messages(context: Context, config: Config) -> List[Message]:
    messages = [Message(role="system", content=config.REPLY_PROMPT)]
    for turn in context.recent(REPLY_HISTORY_SIZE):
        messages.append(Message(role="user", content=turn.inquiry))
        messages.append(Message(role="assistant", content=turn.answer))
    messages.append(Message(role="user", content=context.inquiry))
    return messages
