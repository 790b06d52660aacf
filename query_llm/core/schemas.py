from typing import Any, Callable, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

# 1. MESSAGE SCHEMA (one entry of a completion request)
class Message(BaseModel):
    """
    Single role-tagged chat message.
    """
    role: Literal["system", "user", "assistant"]
    content: str


# 2. STAGE TRACE
class StageRecord(BaseModel):
    """
    Observability record emitted around a pipeline stage.

    An `enter` record carries only name and timestamp; a `leave` record also
    carries the decoded fields. `simplify` folds each pair into one record
    with a duration.
    """
    name: str
    timestamp: int = Field(description="Unix epoch in milliseconds")
    duration: Optional[int] = Field(default=None, description="Milliseconds between enter and leave")
    fields: Dict[str, Any] = Field(default_factory=dict)


# 3. CONVERSATION HISTORY
class HistoryEntry(BaseModel):
    """
    A completed turn. Appended by the caller after a pipeline run; stages
    only ever read a bounded suffix of the history.
    """
    inquiry: str
    answer: str = ""
    thought: Optional[str] = None
    keyphrases: Optional[str] = None
    topic: Optional[str] = None
    duration: int = Field(default=0, description="Turn duration in milliseconds")
    stages: List[StageRecord] = Field(default_factory=list)


# 4. PIPELINE CONTEXT
class Delegates(BaseModel):
    """
    Side-effect hooks supplied by the caller. The pipeline invokes them but
    never defines or replaces them.
    """
    enter: Optional[Callable[[str], None]] = None
    leave: Optional[Callable[[str, Dict[str, Any]], None]] = None
    stream: Optional[Callable[[str], None]] = None


class Context(BaseModel):
    """
    The evolving record of one conversational turn.

    Contexts are frozen: every stage returns a new one with its produced
    fields overlaid (see `overlay`), so a stage never mutates its input.
    """
    model_config = ConfigDict(frozen=True)

    inquiry: str
    history: List[HistoryEntry] = Field(default_factory=list)
    delegates: Delegates = Field(default_factory=Delegates)

    # Fields produced by the stages
    topic: Optional[str] = None
    thought: Optional[str] = None
    keyphrases: Optional[str] = None
    observation: Optional[str] = None
    answer: Optional[str] = None

    def overlay(self, **fields: Any) -> "Context":
        """Return a copy of this context with `fields` laid on top."""
        return self.model_copy(update=fields)

    def recent(self, count: int) -> List[HistoryEntry]:
        """The most recent `count` history entries, oldest first."""
        if count <= 0:
            return []
        return self.history[-count:]
