"""Core: schemas, structured-text codec, conversation session.

The pipeline lives in `query_llm.core.pipeline`; it depends on the stage
modules, which in turn depend on this package.
"""

from .schemas import (
    Message,
    StageRecord,
    HistoryEntry,
    Delegates,
    Context,
)
from .codec import StructuredTextCodec, unjson
from .session import ConversationSession, StageRecorder, simplify

__all__ = [
    # Schemas
    "Message",
    "StageRecord",
    "HistoryEntry",
    "Delegates",
    "Context",
    # Codec
    "StructuredTextCodec",
    "unjson",
    # Session
    "ConversationSession",
    "StageRecorder",
    "simplify",
]
