"""
Response Module

Final stage of the reasoning pipeline: turns the observation from `reason`
into a polite, concise answer.
"""

from typing import List, Optional

from query_llm.core.codec import StructuredTextCodec
from query_llm.core.schemas import Context, HistoryEntry, Message
from query_llm.llms.base import BaseLLM
from query_llm.utils.config import Config, get_config
from query_llm.utils.logger import get_logger

logger = get_logger(__name__)

# Number of past exchanges quoted in the system prompt
RESPOND_HISTORY_SIZE = 2


async def respond(context: Context, llm: BaseLLM, config: Optional[Config] = None) -> Context:
    """
    Respond to the user's most recent inquiry.

    Args:
        context: Current pipeline context (after `reason`)
        llm: LLM client to use
        config: Configuration (defaults to the global one)

    Returns:
        Updated context carrying `answer`
    """
    config = config or get_config()
    codec = StructuredTextCodec.from_config(config)
    schema = config.RESPOND_SCHEMA if codec.json_mode else None

    delegates = context.delegates
    if delegates.enter:
        delegates.enter("Respond")

    prompt = _build_respond_prompt(context.recent(RESPOND_HISTORY_SIZE), config, json_mode=bool(schema))
    observation = context.observation or ""
    messages = [
        Message(role="system", content=prompt),
        Message(role="user", content=codec.encode({"inquiry": context.inquiry, "observation": observation})),
    ]
    if not schema:
        messages.append(Message(role="assistant", content="Answer: "))

    completion = await llm.complete(messages, schema, delegates.stream)
    if schema:
        # A completion that is not JSON at all is still an answer.
        answer = codec.breakdown("", completion).get("answer") or completion
    else:
        answer = completion

    logger.info(f"Respond: {len(answer)} chars")

    if delegates.leave:
        delegates.leave("Respond", {"inquiry": context.inquiry, "observation": observation, "answer": answer})
    return context.overlay(answer=answer)


def _build_respond_prompt(relevant: List[HistoryEntry], config: Config, json_mode: bool) -> str:
    prompt = config.RESPOND_PROMPT + config.RESPOND_GUIDELINE if json_mode else config.RESPOND_PROMPT
    if relevant:
        prompt += "\n\nFor your reference, you and the user have the following Q&A discussion:\n"
        for turn in relevant:
            prompt += f"* {turn.inquiry} {turn.answer}\n"
    return prompt
