"""
Reasoning Module

Chain-of-thought stage: asks the model to think about the inquiry and to
produce the thought, keyphrases, observation and topic that `respond` uses.
"""

from typing import Dict, List, Optional

from query_llm.core.codec import StructuredTextCodec
from query_llm.core.schemas import Context, Message
from query_llm.llms.base import BaseLLM
from query_llm.utils.config import Config, get_config
from query_llm.utils.logger import get_logger

logger = get_logger(__name__)

# Number of past turns replayed as worked examples
REASON_HISTORY_SIZE = 3

TOOL = "Google"
REASON_FIELDS = ("topic", "thought", "keyphrases", "observation")


async def reason(context: Context, llm: BaseLLM, config: Optional[Config] = None) -> Context:
    """
    Perform step-by-step reasoning about the inquiry.

    In plain-text mode the completion is primed with "tool: Google\\nthought: ".
    When the decoded keyphrases come back empty, the call is repeated exactly
    once with a priming fragment that already carries the thought and asks
    for the keyphrases.

    Args:
        context: Current pipeline context
        llm: LLM client to use
        config: Configuration (defaults to the global one)

    Returns:
        Updated context carrying `topic`, `thought`, `keyphrases` and `observation`
    """
    config = config or get_config()
    codec = StructuredTextCodec.from_config(config)
    schema = config.REASON_SCHEMA if codec.json_mode else None

    delegates = context.delegates
    if delegates.enter:
        delegates.enter("Reason")

    messages = _build_reason_messages(context, codec, config)
    hint = "" if schema else "\n".join([f"tool: {TOOL}", "thought: "])
    if not schema:
        messages.append(Message(role="assistant", content=hint))

    completion = await llm.complete(messages, schema)
    result = codec.breakdown(hint, completion)

    if not schema and not result.get("keyphrases"):
        logger.warning("Reason: empty keyphrases, trying again")
        hint = "\n".join([f"tool: {TOOL}", "thought: " + result.get("thought", ""), "keyphrases: "])
        messages[-1] = Message(role="assistant", content=hint)
        completion = await llm.complete(messages, schema)
        result = codec.breakdown(hint, completion)

    fields: Dict[str, str] = {name: result.get(name) or "" for name in REASON_FIELDS}
    logger.info(f"Reason: topic='{fields['topic']}', keyphrases='{fields['keyphrases']}'")

    if delegates.leave:
        delegates.leave("Reason", dict(fields))
    return context.overlay(**fields)


def _build_reason_messages(context: Context, codec: StructuredTextCodec, config: Config) -> List[Message]:
    """System prompt with the output format, then past turns as worked examples."""
    prompt = codec.structure(config.REASON_PROMPT, config.REASON_GUIDELINE)
    relevant = context.recent(REASON_HISTORY_SIZE)
    if not relevant:
        prompt += codec.structure(config.REASON_EXAMPLE_INQUIRY, config.REASON_EXAMPLE_OUTPUT)

    messages = [Message(role="system", content=prompt)]
    for turn in relevant:
        messages.append(Message(role="user", content=turn.inquiry))
        assistant = codec.encode({
            "tool": TOOL,
            "thought": turn.thought or "",
            "keyphrases": turn.keyphrases or "",
            "observation": turn.answer,
            "topic": turn.topic or "",
        })
        messages.append(Message(role="assistant", content=assistant))

    messages.append(Message(role="user", content=context.inquiry))
    return messages
