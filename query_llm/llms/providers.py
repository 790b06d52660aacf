"""
Transport adapters for the two supported LLM wire protocols.

A provider turns role-tagged messages into an HTTP request and turns the
provider's response (whole, or one SSE line at a time) back into text.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from query_llm.core.schemas import Message
from query_llm.llms.errors import EvalError
from query_llm.utils.config import Config

DATA_PREFIX = "data: "
DONE_SENTINEL = "data: [DONE]"
STOP_SEQUENCES = ["<|im_end|>", "<|end|>", "<|eot_id|>"]


@dataclass
class PreparedRequest:
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Dict[str, Any] = field(default_factory=dict)


class Provider(ABC):
    """Request/response shape of one LLM API family."""

    name = "provider"

    def __init__(self, config: Config):
        self.base_url = config.LLM_API_BASE_URL
        self.api_key = config.LLM_API_KEY
        self.model = config.LLM_CHAT_MODEL
        self.max_tokens = config.LLM_MAX_TOKENS
        self.temperature = config.LLM_TEMPERATURE

    @abstractmethod
    def prepare(
        self,
        messages: List[Message],
        schema: Optional[Dict[str, Any]] = None,
        streaming: bool = False,
    ) -> PreparedRequest:
        """Build the URL, headers and JSON body for one completion call."""

    @abstractmethod
    def extract(self, envelope: Dict[str, Any]) -> str:
        """Pull the completion text out of a full response envelope."""

    @abstractmethod
    def extract_delta(self, data: Dict[str, Any]) -> str:
        """Pull the incremental text out of one decoded stream event."""

    def extract_incremental(self, line: str) -> Optional[str]:
        """
        Decode one SSE line into a text fragment.

        Returns None when the line is not a complete data event yet, i.e.
        its JSON payload was cut at a chunk boundary; the caller keeps it and
        prefixes it onto the next line.
        """
        if not line.startswith(DATA_PREFIX):
            return None
        try:
            data = json.loads(line[len(DATA_PREFIX):])
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return ""
        return self.extract_delta(data)


class ChatProvider(Provider):
    """OpenAI-style chat completions (also vLLM, Ollama, Groq and friends)."""

    name = "chat"

    def prepare(self, messages, schema=None, streaming=False) -> PreparedRequest:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        body: Dict[str, Any] = {
            "messages": [message.model_dump() for message in messages],
            "model": self.model,
            "stop": list(STOP_SEQUENCES),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stream": streaming,
        }
        if schema:
            body["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "schema": schema,
                    "name": "response",
                    "strict": True,
                },
            }

        return PreparedRequest(url=f"{self.base_url}/chat/completions", headers=headers, body=body)

    def extract(self, envelope: Dict[str, Any]) -> str:
        choices = envelope.get("choices") if isinstance(envelope, dict) else None
        if not choices:
            raise EvalError(f"Chat response has no choices: {str(envelope)[:200]}")
        message = choices[0].get("message") or {}
        return message.get("content") or ""

    def extract_delta(self, data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        delta = choices[0].get("delta") or {}
        return delta.get("content") or ""


class GenerateProvider(Provider):
    """Gemini-style generateContent / streamGenerateContent."""

    name = "generate"

    def prepare(self, messages, schema=None, streaming=False) -> PreparedRequest:
        generate = "streamGenerateContent?alt=sse&" if streaming else "generateContent?"
        url = f"{self.base_url}/models/{self.model}:{generate}key={self.api_key}"

        system_instruction = None
        contents = []
        for message in messages:
            bundle = {"role": message.role, "parts": [{"text": message.content}]}
            if message.role == "system" and system_instruction is None:
                system_instruction = bundle
            elif message.role == "user":
                contents.append(bundle)

        generation_config: Dict[str, Any] = {
            "temperature": self.temperature,
            "max_output_tokens": self.max_tokens,
            "response_mime_type": "application/json" if schema else "text/plain",
        }
        if schema:
            generation_config["response_schema"] = strip_additional_properties(schema)

        body: Dict[str, Any] = {"contents": contents, "generation_config": generation_config}
        if system_instruction is not None:
            body["system_instruction"] = system_instruction

        return PreparedRequest(url=url, headers={"Content-Type": "application/json"}, body=body)

    def extract(self, envelope: Dict[str, Any]) -> str:
        candidates = envelope.get("candidates") if isinstance(envelope, dict) else None
        if not candidates:
            raise EvalError(f"Generate response has no candidates: {str(envelope)[:200]}")
        return self._join_parts(candidates[0])

    def extract_delta(self, data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        return self._join_parts(candidates[0])

    @staticmethod
    def _join_parts(candidate: Dict[str, Any]) -> str:
        content = candidate.get("content") or {}
        parts = content.get("parts") or []
        return "".join(part.get("text", "") for part in parts)


def strip_additional_properties(schema: Any) -> Any:
    """Copy of a JSON schema without any "additionalProperties" key."""
    if isinstance(schema, dict):
        return {
            key: strip_additional_properties(value)
            for key, value in schema.items()
            if key != "additionalProperties"
        }
    if isinstance(schema, list):
        return [strip_additional_properties(item) for item in schema]
    return schema


def select_provider(config: Config) -> Provider:
    """Pick the provider family from the configured base URL."""
    if config.is_gemini:
        return GenerateProvider(config)
    return ChatProvider(config)


class StreamReassembler:
    """
    Turns raw SSE text chunks into completion fragments.

    Network chunks do not respect line boundaries, so a line that does not
    decode yet is held back and prefixed onto the next piece. The resulting
    fragments are the same however the stream was chunked.
    """

    def __init__(self, provider: Provider):
        self.provider = provider
        self.buffer = ""
        self.done = False

    def feed(self, chunk: str) -> List[str]:
        fragments: List[str] = []
        for piece in chunk.split("\n"):
            if self.done:
                break
            line = self.buffer + piece
            if line.startswith(":"):
                self.buffer = ""
                continue
            stripped = line.strip()
            if stripped == DONE_SENTINEL:
                self.buffer = ""
                self.done = True
                break
            if not stripped:
                continue

            partial = self.provider.extract_incremental(stripped)
            if partial is None:
                # Keep only what can still become a data event.
                if stripped.startswith(DATA_PREFIX) or DATA_PREFIX.startswith(line):
                    self.buffer = line
                else:
                    self.buffer = ""
                continue

            self.buffer = ""
            if partial:
                fragments.append(partial)
        return fragments


__all__ = [
    "PreparedRequest",
    "Provider",
    "ChatProvider",
    "GenerateProvider",
    "StreamReassembler",
    "select_provider",
    "strip_additional_properties",
]
