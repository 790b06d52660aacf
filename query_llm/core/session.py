import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from query_llm.core.schemas import HistoryEntry, StageRecord
from query_llm.utils.logger import get_logger

logger = get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class StageRecorder:
    """
    Collects the enter/leave trace of one pipeline run.

    `enter` and `leave` are meant to be handed to the pipeline as delegates.
    """

    def __init__(self):
        self.records: List[StageRecord] = []

    def enter(self, name: str) -> None:
        logger.debug(f"Enter stage {name}")
        self.records.append(StageRecord(name=name, timestamp=now_ms()))

    def leave(self, name: str, fields: Dict[str, Any]) -> None:
        logger.debug(f"Leave stage {name}")
        self.records.append(StageRecord(name=name, timestamp=now_ms(), fields=dict(fields)))

    def simplify(self) -> List[StageRecord]:
        return simplify(self.records)


def simplify(records: List[StageRecord]) -> List[StageRecord]:
    """
    Collapse every (enter, leave) pair into one record with a duration.

    Records are expected in pairs; a trailing unmatched enter is dropped.
    """
    stages = []
    for index in range(1, len(records), 2):
        before, after = records[index - 1], records[index]
        stages.append(after.model_copy(update={"duration": after.timestamp - before.timestamp}))
    return stages


class ConversationSession:
    """
    In-memory conversation owned by the caller.

    The pipeline only reads a bounded suffix of `history`; completed turns are
    appended here, never by the stages themselves.
    """

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or str(uuid4())
        self.history: List[HistoryEntry] = []
        logger.info(f"Created new session: {self.session_id}")

    @property
    def total_turns(self) -> int:
        return len(self.history)

    @property
    def last_turn(self) -> Optional[HistoryEntry]:
        return self.history[-1] if self.history else None

    def add_turn(self, entry: HistoryEntry) -> None:
        """Append a completed turn."""
        self.history.append(entry)
        logger.debug(f"Added turn {self.total_turns}: "
                     f"inquiry={len(entry.inquiry)} chars, answer={len(entry.answer)} chars, "
                     f"duration={entry.duration} ms")

    def clear(self) -> None:
        """Forget the conversation so far."""
        self.history = []
        logger.info(f"Cleared session: {self.session_id}")
