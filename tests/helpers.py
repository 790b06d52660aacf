"""Fake provider payloads shared by the HTTP-level tests."""

import json

import httpx


def chat_envelope(content: str) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def generate_envelope(*texts: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": t} for t in texts]}}]}


def chat_sse(*fragments: str) -> str:
    """An OpenAI-style event stream carrying `fragments` as deltas."""
    lines = [": keep-alive", ""]
    lines.append("data: " + json.dumps({"choices": [{"index": 0, "delta": {"role": "assistant"}}]}))
    lines.append("")
    for fragment in fragments:
        lines.append("data: " + json.dumps({"choices": [{"index": 0, "delta": {"content": fragment}}]}))
        lines.append("")
    lines.append("data: [DONE]")
    lines.append("")
    return "\n".join(lines)


def generate_sse(*fragments: str) -> str:
    """A Gemini-style event stream (alt=sse) carrying `fragments`."""
    lines = []
    for fragment in fragments:
        lines.append("data: " + json.dumps(generate_envelope(fragment)))
        lines.append("")
    return "\r\n".join(lines)


def chunked(body: bytes, size: int):
    """Async byte stream delivering `body` in pieces of `size` bytes."""
    async def stream():
        for start in range(0, len(body), size):
            yield body[start:start + size]
    return stream()


def sse_response(text: str, size: int = 0) -> httpx.Response:
    body = text.encode("utf-8")
    content = chunked(body, size) if size else body
    return httpx.Response(200, headers={"content-type": "text/event-stream; charset=utf-8"}, content=content)
