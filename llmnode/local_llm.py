"""A local LLM client that subclasses extend with the actual model calls."""

from __future__ import annotations

import dataclasses
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from llmnode.client import (
    LlmCapabilities,
    LlmClient,
    ModelInfo,
    ModelNotSupportedError,
    NodeMetrics,
    UnsupportedOperationError,
)
from llmnode.models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
    TextCompletionRequest,
    TextCompletionResponse,
)


@dataclass
class LocalLlmConfig:
    """Settings of a local LLM instance."""

    api_url: str = ""
    timeout_seconds: int = 60
    max_concurrent_requests: int = 1
    models: list[ModelInfo] = field(default_factory=list)
    additional_params: dict[str, str] = field(default_factory=dict)


class LocalLlmClient(LlmClient):
    """Client for a locally hosted LLM.

    It checks that a requested model is configured; the completion calls
    themselves are provided by subclasses for a specific backend.
    """

    def __init__(self, config: LocalLlmConfig) -> None:
        self.config = config
        self._lock = threading.Lock()
        self._metrics = NodeMetrics(last_updated=int(time.time()))

    def update_metrics(self, cpu: float, memory: float, gpu: Optional[float]) -> None:
        """Record new utilisation figures and stamp the update time."""
        with self._lock:
            self._metrics.cpu_utilization = cpu
            self._metrics.memory_utilization = memory
            self._metrics.gpu_utilization = gpu
            self._metrics.last_updated = int(time.time())

    def get_supported_models(self) -> list[ModelInfo]:
        return list(self.config.models)

    def get_capabilities(self) -> LlmCapabilities:
        return LlmCapabilities(
            supports_streaming=False,
            max_concurrent_requests=self.config.max_concurrent_requests,
            supports_batching=False,
            features={},
        )

    def get_metrics(self) -> NodeMetrics:
        with self._lock:
            return dataclasses.replace(self._metrics)

    def _check_model(self, model: str) -> None:
        if not self.supports_model(model):
            raise ModelNotSupportedError(model)

    async def chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        self._check_model(request.model)
        raise UnsupportedOperationError(
            "chat_completion must be provided by a backend-specific subclass of LocalLlmClient"
        )

    async def text_completion(self, request: TextCompletionRequest) -> TextCompletionResponse:
        self._check_model(request.model)
        raise UnsupportedOperationError(
            "text_completion must be provided by a backend-specific subclass of LocalLlmClient"
        )

    async def embeddings(self, request: EmbeddingRequest) -> EmbeddingResponse:
        self._check_model(request.model)
        raise UnsupportedOperationError(
            "embeddings must be provided by a backend-specific subclass of LocalLlmClient"
        )