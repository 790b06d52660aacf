"""
Structured Text Codec

Serializes pipeline fields into the text the model sees, and recovers them
from a completion that is either JSON or a block of "key: value" lines.
Decoding never raises: the worst case is an empty field set.
"""

import json
from typing import Any, Dict, List, Optional

from query_llm.utils.config import Config, get_config
from query_llm.utils.prompts import DEFAULT_TOPIC
from query_llm.utils.logger import get_logger

logger = get_logger(__name__)


def unjson(text: str) -> Dict[str, Any]:
    """
    Parse `text` as a JSON object, repairing a truncated tail if needed.

    Tries the text as is, then with a closing brace, then with a closing
    quote and brace. Anything that still fails, or that is not an object,
    yields an empty dict.
    """
    for suffix in ("", "}", '"}'):
        try:
            data = json.loads(text + suffix)
        except (json.JSONDecodeError, TypeError):
            continue
        return data if isinstance(data, dict) else {}
    return {}


class StructuredTextCodec:
    """
    Encoder/decoder for the fields exchanged with the model.

    In JSON mode fields travel as a JSON object. In plain-text mode they travel
    as "key: value" lines restricted to `keys`, whose last entry is the anchor
    that may span several lines.
    """

    def __init__(self, keys: List[str], json_mode: bool = False):
        if not keys:
            raise ValueError("keys must not be empty")
        self.keys = list(keys)
        self.json_mode = json_mode

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "StructuredTextCodec":
        config = config or get_config()
        return cls(config.PREDEFINED_KEYS, json_mode=config.LLM_JSON_SCHEMA)

    @property
    def anchor(self) -> str:
        return self.keys[-1]

    def encode(self, fields: Dict[str, Any]) -> str:
        if self.json_mode:
            return json.dumps(fields, indent=2)

        lines = []
        for key in self.keys:
            value = fields.get(key)
            if value:
                lines.append(f"{key}: {value}")
        return "\n".join(lines)

    def decode(self, text: str) -> Dict[str, str]:
        if self.json_mode:
            return {key: _stringify(value) for key, value in unjson(text).items()}
        return self.deconstruct(text)

    def deconstruct(self, text: str) -> Dict[str, str]:
        """
        Recover "key: value" fields by scanning the text right to left.

        The anchor value runs from its last marker to the end of the text.
        Every other key, visited in reverse order, takes the first line after
        its last marker in the remaining prefix; the prefix is then cut at
        that marker so earlier keys cannot see text that belongs to later ones.
        """
        parts: Dict[str, str] = {}
        marker = self.anchor + ":"
        end = text.rfind(marker)
        if end >= 0:
            parts[self.anchor] = text[end + len(marker):].strip()
        else:
            end = len(text)

        for key in reversed(self.keys[:-1]):
            marker = key + ":"
            pos = text.rfind(marker, 0, end)
            if pos < 0:
                continue
            value = text[pos + len(marker):end].strip()
            parts[key] = value.split("\n", 1)[0].strip()
            end = pos

        return parts

    def breakdown(self, hint: str, completion: str) -> Dict[str, str]:
        """
        Decode a completion that continues a priming `hint`.

        JSON is tried first when the combined text opens an object; otherwise
        (or when that yields nothing) the plain-text scan is used. The result
        always carries a non-empty topic.
        """
        text = hint + completion
        if text.startswith("{"):
            result = {key: _stringify(value) for key, value in unjson(text).items()}
            if result:
                if not result.get("topic"):
                    result["topic"] = DEFAULT_TOPIC
                return result
            logger.debug(f"Failed to parse JSON: {text.replace(chr(10), '')[:200]}")

        result = self.deconstruct(text)
        if not result.get("topic"):
            result = self.deconstruct(text + "\n" + f"topic: {DEFAULT_TOPIC}")
        return result

    def structure(self, prefix: str, obj: Dict[str, Any]) -> str:
        """Render a titled block of fields for a system prompt."""
        if self.json_mode:
            title = prefix + " (JSON with this schema)" if prefix else ""
            return title + "\n" + json.dumps(obj, indent=2) + "\n"
        return (prefix or "") + "\n\n" + self.encode(obj) + "\n"


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)
