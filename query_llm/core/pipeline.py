"""
Query Pipeline

Orchestrates: Reason → Respond, or a single zero-shot Reply.
"""

from dataclasses import dataclass, field
from functools import partial
from typing import Awaitable, Callable, List, Optional

from query_llm.core.schemas import Context, Delegates, HistoryEntry, StageRecord
from query_llm.core.session import ConversationSession, StageRecorder, now_ms
from query_llm.llms.base import BaseLLM
from query_llm.modules.reason import reason
from query_llm.modules.reply import reply
from query_llm.modules.respond import respond
from query_llm.utils.config import Config, get_config
from query_llm.utils.logger import get_logger

logger = get_logger(__name__)

Stage = Callable[[Context], Awaitable[Context]]


def pipe(*stages: Stage) -> Stage:
    """
    Chain stages from left to right into a single stage.

    Each stage is awaited before the next one starts and receives the
    context the previous one returned.
    """
    async def run(context: Context) -> Context:
        for stage in stages:
            context = await stage(context)
        return context

    return run


@dataclass
class PipelineResult:
    """Result from pipeline processing."""

    context: Context
    duration: int = 0  # milliseconds
    stages: List[StageRecord] = field(default_factory=list)

    @property
    def answer(self) -> str:
        return self.context.answer or ""

    def to_history(self) -> HistoryEntry:
        return HistoryEntry(
            inquiry=self.context.inquiry,
            thought=self.context.thought,
            keyphrases=self.context.keyphrases,
            topic=self.context.topic,
            answer=self.answer,
            duration=self.duration,
            stages=self.stages,
        )


class QueryPipeline:
    """
    Runs one inquiry through the configured stages.

    Flow:
    1. Build a Context from the inquiry, the session history and the delegates
    2. Run `reason` then `respond`, or `reply` alone in zero-shot mode
    3. Optionally record the completed turn into the session
    """

    def __init__(
        self,
        llm_client: BaseLLM,
        session: Optional[ConversationSession] = None,
        config: Optional[Config] = None,
    ):
        """
        Initialize pipeline.

        Args:
            llm_client: LLM client for all stage calls
            session: Conversation whose history feeds the stages
            config: Configuration (defaults to the global one)
        """
        self.llm = llm_client
        self.session = session or ConversationSession()
        self.config = config or get_config()
        self.zero_shot = self.config.LLM_ZERO_SHOT
        self.run = self._compose()

    def _compose(self) -> Stage:
        bind = lambda stage: partial(stage, llm=self.llm, config=self.config)
        if self.zero_shot:
            return pipe(bind(reply))
        return pipe(bind(reason), bind(respond))

    async def process(
        self,
        inquiry: str,
        stream: Optional[Callable[[str], None]] = None,
        on_stage: Optional[Callable[[str, dict], None]] = None,
    ) -> PipelineResult:
        """
        Process an inquiry through the full pipeline.

        Args:
            inquiry: User's question
            stream: Receives answer fragments as they arrive
            on_stage: Also notified whenever a stage finishes

        Returns:
            PipelineResult with the final context and the stage trace
        """
        logger.info(f"Processing inquiry: '{inquiry[:50]}' at turn {self.session.total_turns + 1}")

        recorder = StageRecorder()

        def leave(name: str, fields: dict) -> None:
            recorder.leave(name, fields)
            if on_stage:
                on_stage(name, fields)

        context = Context(
            inquiry=inquiry,
            history=self.session.history,
            delegates=Delegates(enter=recorder.enter, leave=leave, stream=stream),
        )

        start = now_ms()
        result = await self.run(context)
        duration = now_ms() - start

        logger.info(f"Answered in {duration} ms: {len(result.answer or '')} chars")
        return PipelineResult(context=result, duration=duration, stages=list(recorder.records))

    async def process_and_record(
        self,
        inquiry: str,
        stream: Optional[Callable[[str], None]] = None,
        on_stage: Optional[Callable[[str, dict], None]] = None,
    ) -> PipelineResult:
        """
        Process the inquiry AND record the turn to the session.

        A failing turn raises before anything is recorded.
        """
        result = await self.process(inquiry, stream=stream, on_stage=on_stage)
        self.session.add_turn(result.to_history())
        return result
