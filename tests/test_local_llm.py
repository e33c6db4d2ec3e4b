import time

import pytest

from llmnode.client import (
    ModelInfo,
    ModelNotSupportedError,
    UnsupportedOperationError,
    as_streaming,
    supports_streaming,
)
from llmnode.local_llm import LocalLlmClient, LocalLlmConfig
from llmnode.models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    EmbeddingRequest,
    TextCompletionRequest,
)


def _model(model_id):
    return ModelInfo(
        id=model_id,
        name=model_id.upper(),
        max_context_length=4096,
        supports_chat=True,
        supports_text=True,
        supports_embeddings=True,
    )


@pytest.fixture
def client():
    config = LocalLlmConfig(
        api_url="http://localhost:8000",
        timeout_seconds=30,
        max_concurrent_requests=4,
        models=[_model("test-model")],
    )
    return LocalLlmClient(config)


def test_config_defaults():
    config = LocalLlmConfig()
    assert config.api_url == ""
    assert config.timeout_seconds == 60
    assert config.max_concurrent_requests == 1
    assert config.models == []
    assert config.additional_params == {}


def test_supported_models_follow_config(client):
    assert [m.id for m in client.get_supported_models()] == ["test-model"]
    assert client.supports_model("test-model")
    assert not client.supports_model("other-model")


def test_capabilities_follow_config(client):
    caps = client.get_capabilities()
    assert caps.max_concurrent_requests == client.config.max_concurrent_requests
    assert caps.supports_streaming is False
    assert caps.supports_batching is False
    assert caps.features == {}
    assert supports_streaming(client) is False
    assert as_streaming(client) is None


def test_initial_metrics(client):
    metrics = client.get_metrics()
    assert metrics.cpu_utilization == 0.0
    assert metrics.memory_utilization == 0.0
    assert metrics.gpu_utilization is None
    assert metrics.active_requests == 0
    assert abs(metrics.last_updated - int(time.time())) <= 2


def test_update_metrics(client):
    client.update_metrics(0.8, 0.7, 0.9)
    metrics = client.get_metrics()
    assert metrics.cpu_utilization == 0.8
    assert metrics.memory_utilization == 0.7
    assert metrics.gpu_utilization == 0.9

    client.update_metrics(0.1, 0.2, None)
    assert client.get_metrics().gpu_utilization is None


def test_get_metrics_returns_copy(client):
    snapshot = client.get_metrics()
    snapshot.cpu_utilization = 0.99
    assert client.get_metrics().cpu_utilization == 0.0


@pytest.mark.asyncio
async def test_unknown_model_is_rejected(client):
    with pytest.raises(ModelNotSupportedError) as info:
        await client.chat_completion(ChatCompletionRequest(model="missing"))
    assert info.value.model == "missing"
    with pytest.raises(ModelNotSupportedError):
        await client.text_completion(TextCompletionRequest(model="missing"))
    with pytest.raises(ModelNotSupportedError):
        await client.embeddings(EmbeddingRequest(model="missing"))


@pytest.mark.asyncio
async def test_known_model_needs_backend(client):
    with pytest.raises(UnsupportedOperationError, match="chat_completion"):
        await client.chat_completion(ChatCompletionRequest(model="test-model"))
    with pytest.raises(UnsupportedOperationError, match="text_completion"):
        await client.text_completion(TextCompletionRequest(model="test-model"))
    with pytest.raises(UnsupportedOperationError, match="embeddings"):
        await client.embeddings(EmbeddingRequest(model="test-model"))


class _EchoClient(LocalLlmClient):
    async def chat_completion(self, request):
        self._check_model(request.model)
        last = request.messages[-1]
        return ChatCompletionResponse(id="echo", object="chat.completion", model=request.model)


@pytest.mark.asyncio
async def test_subclass_provides_backend():
    echo = _EchoClient(LocalLlmConfig(models=[_model("echo-model")]))
    response = await echo.chat_completion(
        ChatCompletionRequest(
            model="echo-model", messages=[ChatMessage(role="user", content="Hello, world!")]
        )
    )
    assert response.model == "echo-model"
    with pytest.raises(ModelNotSupportedError):
        await echo.chat_completion(ChatCompletionRequest(model="other"))