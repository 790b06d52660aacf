import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from query_llm.core.schemas import Message
from query_llm.llms.base import BaseLLM
from query_llm.llms.errors import EvalError, HttpStatusError, RequestTimeoutError, TransportError
from query_llm.llms.providers import PreparedRequest, Provider, StreamReassembler, select_provider
from query_llm.utils.config import Config, get_config
from query_llm.utils.logger import get_logger
from query_llm.utils.tokenizer import count_messages_tokens

logger = get_logger(__name__)

# Delay unit of the linear backoff: the retry after attempt k waits k * this.
RETRY_DELAY_SECONDS = 1.5


class CompletionClient(BaseLLM):
    """
    Completion client for a RESTful LLM service.

    The provider family (chat-completions or generate-content) is chosen once
    from the configured base URL. Timeouts and unreadable envelopes are
    retried with a linearly growing delay; HTTP status errors are not.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_config()
        # A retry ceiling below 1 would leave `complete` with nothing to return.
        self.config.validate()
        self.provider: Provider = select_provider(self.config)
        self.transport = transport
        logger.info(f"LLM client initialized: {self.provider.name} provider, "
                    f"model={self.config.LLM_CHAT_MODEL}")

    async def complete(
        self,
        messages: List[Message],
        schema: Optional[Dict[str, Any]] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> str:
        """
        Call the LLM API and return the completion text.

        A streamed attempt that fails after fragments already reached
        `on_chunk` is not retried: a fresh attempt would replay them.
        """
        streaming = self.config.LLM_STREAMING and on_chunk is not None
        max_attempts = self.config.LLM_MAX_RETRY_ATTEMPT

        self._log_messages(messages, schema, streaming)

        delivered: List[str] = []

        def deliver(fragment: str) -> None:
            delivered.append(fragment)
            on_chunk(fragment)

        for attempt in range(1, max_attempts + 1):
            try:
                return await self._exchange(messages, schema, deliver if on_chunk else None, streaming)

            except (RequestTimeoutError, EvalError) as e:
                if delivered:
                    logger.error(f"LLM stream broke after {len(delivered)} fragments: {e}. Not retrying")
                    raise
                if attempt < max_attempts:
                    delay = attempt * RETRY_DELAY_SECONDS
                    logger.warning(f"LLM error (attempt {attempt}/{max_attempts}): {e}. "
                                   f"Retrying in {delay}s...")
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"LLM call failed after {max_attempts} attempts: {e}")
                    raise
            except TransportError as e:
                logger.error(f"LLM call failed: {e}")
                raise

    async def _exchange(
        self,
        messages: List[Message],
        schema: Optional[Dict[str, Any]],
        on_chunk: Optional[Callable[[str], None]],
        streaming: bool,
    ) -> str:
        request = self.provider.prepare(messages, schema, streaming)
        timeout = httpx.Timeout(self.config.LLM_TIMEOUT)

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                if streaming:
                    return await self._stream(client, request, on_chunk)
                return await self._fetch(client, request, on_chunk)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                f"Timeout with LLM chat after {self.config.LLM_TIMEOUT} seconds",
                timeout=self.config.LLM_TIMEOUT,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"LLM HTTP error: {exc}") from exc

    async def _fetch(
        self,
        client: httpx.AsyncClient,
        request: PreparedRequest,
        on_chunk: Optional[Callable[[str], None]],
    ) -> str:
        response = await client.post(request.url, headers=request.headers, json=request.body)
        if not response.is_success:
            raise HttpStatusError(response.status_code, response.reason_phrase, response.text[:500])

        try:
            envelope = response.json()
        except ValueError as exc:
            raise EvalError("LLM returned invalid JSON") from exc

        answer = self.provider.extract(envelope).strip()
        logger.debug(f"Completion: {answer[:200]}")
        if answer and on_chunk:
            on_chunk(answer)
        return answer

    async def _stream(
        self,
        client: httpx.AsyncClient,
        request: PreparedRequest,
        on_chunk: Callable[[str], None],
    ) -> str:
        answer = ""
        async with client.stream("POST", request.url, headers=request.headers, json=request.body) as response:
            if not response.is_success:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise HttpStatusError(response.status_code, response.reason_phrase, body[:500])

            reassembler = StreamReassembler(self.provider)
            async for chunk in response.aiter_text():
                for partial in reassembler.feed(chunk):
                    if not answer:
                        # Models sometimes open with a stray newline.
                        partial = partial.lstrip()
                        if not partial:
                            continue
                    answer += partial
                    on_chunk(partial)
                if reassembler.done:
                    break

        logger.debug(f"Streamed completion: {len(answer)} chars")
        return answer

    def _log_messages(self, messages: List[Message], schema: Optional[Dict[str, Any]], streaming: bool) -> None:
        logger.info(f"Calling LLM: {len(messages)} messages, "
                    f"{'streaming' if streaming else 'buffered'}, schema={'yes' if schema else 'no'}")
        if not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug(f"Prompt size: ~{count_messages_tokens(messages, schema)} tokens")
        for message in messages:
            logger.debug(f"{message.role}: {message.content}")
