"""Client interface, errors and descriptive types for LLM nodes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Mapping, Optional

from llmnode.models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
    TextCompletionRequest,
    TextCompletionResponse,
)


class LlmError(Exception):
    """Base error for LLM operations."""


class RequestFailedError(LlmError):
    """The request to the model failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"LLM request failed: {reason}")
        self.reason = reason


class ModelNotSupportedError(LlmError):
    """The requested model is not served by this client."""

    def __init__(self, model: str) -> None:
        super().__init__(f"Model not supported: {model}")
        self.model = model


class InvalidRequestError(LlmError):
    """The request is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid request: {reason}")
        self.reason = reason


class ClientNotInitializedError(LlmError):
    """The client has not been set up."""

    def __init__(self) -> None:
        super().__init__("LLM client not initialized")


class LlmTimeoutError(LlmError, TimeoutError):
    """The operation did not finish in time."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Operation timed out after {timeout:g}s")
        self.timeout = timeout


class InternalLlmError(LlmError):
    """An unexpected internal failure."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Internal error: {reason}")
        self.reason = reason


class UnsupportedOperationError(LlmError):
    """The operation is not provided by this client."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Not implemented: {reason}")
        self.reason = reason


def _require(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


@dataclass
class ModelInfo:
    """Description of a model served by a client."""

    id: str
    name: str
    max_context_length: int
    supports_chat: bool
    supports_text: bool
    supports_embeddings: bool
    parameters: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "max_context_length": self.max_context_length,
            "supports_chat": self.supports_chat,
            "supports_text": self.supports_text,
            "supports_embeddings": self.supports_embeddings,
            "parameters": dict(self.parameters),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModelInfo:
        return cls(
            id=_require(data, "id"),
            name=_require(data, "name"),
            max_context_length=int(_require(data, "max_context_length")),
            supports_chat=bool(_require(data, "supports_chat")),
            supports_text=bool(_require(data, "supports_text")),
            supports_embeddings=bool(_require(data, "supports_embeddings")),
            parameters=dict(data.get("parameters") or {}),
        )


@dataclass
class LlmCapabilities:
    """What a client can do."""

    supports_streaming: bool
    max_concurrent_requests: int
    supports_batching: bool
    features: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "supports_streaming": self.supports_streaming,
            "max_concurrent_requests": self.max_concurrent_requests,
            "supports_batching": self.supports_batching,
            "features": dict(self.features),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LlmCapabilities:
        return cls(
            supports_streaming=bool(_require(data, "supports_streaming")),
            max_concurrent_requests=int(_require(data, "max_concurrent_requests")),
            supports_batching=bool(_require(data, "supports_batching")),
            features=dict(data.get("features") or {}),
        )


@dataclass
class NodeMetrics:
    """Load and performance figures of a node."""

    cpu_utilization: float = 0.0
    memory_utilization: float = 0.0
    gpu_utilization: Optional[float] = None
    requests_per_minute: int = 0
    average_response_time_ms: int = 0
    active_requests: int = 0
    last_updated: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpu_utilization": self.cpu_utilization,
            "memory_utilization": self.memory_utilization,
            "gpu_utilization": self.gpu_utilization,
            "requests_per_minute": self.requests_per_minute,
            "average_response_time_ms": self.average_response_time_ms,
            "active_requests": self.active_requests,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NodeMetrics:
        gpu = data.get("gpu_utilization")
        return cls(
            cpu_utilization=float(_require(data, "cpu_utilization")),
            memory_utilization=float(_require(data, "memory_utilization")),
            gpu_utilization=None if gpu is None else float(gpu),
            requests_per_minute=int(_require(data, "requests_per_minute")),
            average_response_time_ms=int(_require(data, "average_response_time_ms")),
            active_requests=int(_require(data, "active_requests")),
            last_updated=int(_require(data, "last_updated")),
        )


class LlmClient(ABC):
    """Interface of a client that serves LLM requests."""

    @abstractmethod
    def get_supported_models(self) -> list[ModelInfo]:
        """Return the models this client serves."""

    @abstractmethod
    def get_capabilities(self) -> LlmCapabilities:
        """Return the capabilities of this client."""

    @abstractmethod
    def get_metrics(self) -> NodeMetrics:
        """Return the current metrics of this client."""

    @abstractmethod
    async def chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Process a chat completion request."""

    @abstractmethod
    async def text_completion(self, request: TextCompletionRequest) -> TextCompletionResponse:
        """Process a text completion request."""

    @abstractmethod
    async def embeddings(self, request: EmbeddingRequest) -> EmbeddingResponse:
        """Process an embedding request."""

    def supports_model(self, model: str) -> bool:
        """Tell whether a model with this id is served."""
        return any(info.id == model for info in self.get_supported_models())


class StreamingLlmClient(LlmClient):
    """A client that can also stream its completions chunk by chunk."""

    @abstractmethod
    async def streaming_chat_completion(
        self, request: ChatCompletionRequest
    ) -> AsyncIterator[Any]:
        """Start a chat completion and return an async iterator of chunks."""

    @abstractmethod
    async def streaming_text_completion(
        self, request: TextCompletionRequest
    ) -> AsyncIterator[Any]:
        """Start a text completion and return an async iterator of chunks."""


def supports_streaming(client: LlmClient) -> bool:
    """Tell whether the client declares streaming support."""
    return client.get_capabilities().supports_streaming


def as_streaming(client: LlmClient) -> Optional[StreamingLlmClient]:
    """Return the client as a streaming client, or None if it cannot stream."""
    if not supports_streaming(client):
        return None
    if isinstance(client, StreamingLlmClient):
        return client
    return None