"""Pipeline stages: reply (zero-shot), reason, respond."""

from .reply import reply
from .reason import reason
from .respond import respond

__all__ = [
    "reply",
    "reason",
    "respond",
]
