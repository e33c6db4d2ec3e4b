"""Chunk types for streamed completions and helpers to build and collect streams."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, TypeVar

from llmnode.client import RequestFailedError
from llmnode.models import (
    ChatCompletionChoice,
    ChatCompletionResponse,
    ChatMessage,
    TextCompletionChoice,
    TextCompletionResponse,
)

_T = TypeVar("_T")

_COLLECTED_ID = "stream-collected"
_UNKNOWN_MODEL = "unknown"


@dataclass
class ChatMessageDelta:
    """The part of a chat message carried by one chunk."""

    role: Optional[str] = None
    content: Optional[str] = None


@dataclass
class ChatCompletionStreamChoice:
    """One choice inside a streamed chat chunk."""

    index: int
    delta: ChatMessageDelta = field(default_factory=ChatMessageDelta)
    finish_reason: Optional[str] = None


@dataclass
class ChatCompletionChunk:
    """One chunk of a streamed chat completion."""

    id: str
    object: str
    created: int
    model: str
    choices: list[ChatCompletionStreamChoice] = field(default_factory=list)


@dataclass
class TextCompletionStreamChoice:
    """One choice inside a streamed text chunk."""

    index: int
    text: str
    finish_reason: Optional[str] = None


@dataclass
class TextCompletionChunk:
    """One chunk of a streamed text completion."""

    id: str
    object: str
    created: int
    model: str
    choices: list[TextCompletionStreamChoice] = field(default_factory=list)


async def _drain(queue: asyncio.Queue) -> AsyncIterator[Any]:
    """Yield items from the queue until None; raise any exception put in it."""
    while True:
        item = await queue.get()
        if item is None:
            return
        if isinstance(item, BaseException):
            raise item
        yield item


def create_chat_completion_stream(queue: asyncio.Queue) -> AsyncIterator[ChatCompletionChunk]:
    """Turn a queue of chat chunks into a stream.

    The producer puts chunks or exceptions on the queue and puts None to close it.
    """
    return _drain(queue)


def create_text_completion_stream(queue: asyncio.Queue) -> AsyncIterator[TextCompletionChunk]:
    """Turn a queue of text chunks into a stream.

    The producer puts chunks or exceptions on the queue and puts None to close it.
    """
    return _drain(queue)


@dataclass
class _Accumulator:
    index: int
    role: str
    parts: list[str]
    finish_reason: Optional[str]


def _find(accumulators: list[_Accumulator], index: int) -> Optional[_Accumulator]:
    return next((acc for acc in accumulators if acc.index == index), None)


async def _first_chunk(iterator: AsyncIterator[_T]) -> _T:
    chunk = await anext(iterator, None)
    if chunk is None:
        raise RequestFailedError("Empty stream")
    return chunk


async def collect_chat_completion_stream(
    stream: AsyncIterator[ChatCompletionChunk],
) -> ChatCompletionResponse:
    """Gather a chat completion stream into one response.

    The first chunk fixes the choices and their roles; content is taken from
    the chunks that follow it.
    """
    iterator = stream.__aiter__()
    first = await _first_chunk(iterator)
    accumulators = [
        _Accumulator(
            index=choice.index,
            role=choice.delta.role if choice.delta.role is not None else "assistant",
            parts=[],
            finish_reason=choice.finish_reason,
        )
        for choice in first.choices
    ]

    async for chunk in iterator:
        for choice in chunk.choices:
            acc = _find(accumulators, choice.index)
            if acc is None:
                continue
            if choice.delta.content is not None:
                acc.parts.append(choice.delta.content)
            if choice.finish_reason is not None:
                acc.finish_reason = choice.finish_reason

    return ChatCompletionResponse(
        id=_COLLECTED_ID,
        object="chat.completion",
        created=int(time.time()),
        model=_UNKNOWN_MODEL,
        choices=[
            ChatCompletionChoice(
                index=acc.index,
                message=ChatMessage(role=acc.role, content="".join(acc.parts)),
                finish_reason=acc.finish_reason,
            )
            for acc in accumulators
        ],
        usage=None,
    )


async def collect_text_completion_stream(
    stream: AsyncIterator[TextCompletionChunk],
) -> TextCompletionResponse:
    """Gather a text completion stream into one response."""
    iterator = stream.__aiter__()
    first = await _first_chunk(iterator)
    accumulators = [
        _Accumulator(
            index=choice.index,
            role="",
            parts=[choice.text],
            finish_reason=choice.finish_reason,
        )
        for choice in first.choices
    ]

    async for chunk in iterator:
        for choice in chunk.choices:
            acc = _find(accumulators, choice.index)
            if acc is None:
                continue
            acc.parts.append(choice.text)
            if choice.finish_reason is not None:
                acc.finish_reason = choice.finish_reason

    return TextCompletionResponse(
        id=_COLLECTED_ID,
        object="text_completion",
        created=int(time.time()),
        model=_UNKNOWN_MODEL,
        choices=[
            TextCompletionChoice(
                index=acc.index,
                text="".join(acc.parts),
                finish_reason=acc.finish_reason,
            )
            for acc in accumulators
        ],
        usage=None,
    )