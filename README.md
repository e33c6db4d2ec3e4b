# llmnode

Building blocks for serving requests on one or more local LLM nodes.

- **`llmnode.models`**: dataclasses for chat completion, text completion and
  embedding requests and responses, each with `to_dict` and `from_dict`.
  `encode_request` / `decode_request` and `encode_response` /
  `decode_response` convert to and from dictionaries tagged with a `"type"`
  key, which is one of `"chat.completion"`, `"text.completion"` or
  `"embedding"`. An unknown or missing tag raises `ValueError`.
- **`llmnode.client`**: the abstract `LlmClient` and `StreamingLlmClient`
  classes, `ModelInfo`, `LlmCapabilities` and `NodeMetrics`, the helpers
  `supports_streaming` and `as_streaming`, and the `LlmError` exceptions.
  The exceptions are `RequestFailedError`, `ModelNotSupportedError`,
  `InvalidRequestError`, `ClientNotInitializedError`, `LlmTimeoutError`,
  `InternalLlmError` and `UnsupportedOperationError`.
- **`llmnode.streaming`**: chunk types for streamed completions. It also
  provides `create_chat_completion_stream` and `create_text_completion_stream`,
  which read chunks from an `asyncio.Queue`, and
  `collect_chat_completion_stream` and `collect_text_completion_stream`, which
  join a stream into one response.
- **`llmnode.local_llm`**: `LocalLlmConfig` and `LocalLlmClient`, a client
  base that checks the requested model against its configuration and records
  node metrics.
- **`llmnode.load_balancer`**: `LoadBalancer`, which keeps a set of nodes and
  picks one for each model. Four strategies are available in
  `LoadBalancingStrategy`: `ROUND_ROBIN`, `LEAST_LOADED`,
  `CAPABILITY_BASED` and `LATENCY_BASED`.

## Installation

```
pip install .
```

## Example

```python
import asyncio

from llmnode.client import ModelInfo
from llmnode.load_balancer import LoadBalancer, LoadBalancerConfig, LoadBalancingStrategy
from llmnode.local_llm import LocalLlmClient, LocalLlmConfig
from llmnode.models import (
    ChatCompletionChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
)


class EchoClient(LocalLlmClient):
    async def chat_completion(self, request):
        await super().chat_completion(request) if not self.supports_model(request.model) else None
        last = request.messages[-1].content
        return ChatCompletionResponse(
            id="echo-1",
            object="chat.completion",
            model=request.model,
            choices=[ChatCompletionChoice(index=0, message=ChatMessage("assistant", last), finish_reason="stop")],
        )


async def main():
    model = ModelInfo(
        id="my-model",
        name="My Model",
        max_context_length=4096,
        supports_chat=True,
        supports_text=True,
        supports_embeddings=False,
    )
    client = EchoClient(LocalLlmConfig(api_url="http://localhost:8000", models=[model]))

    balancer = LoadBalancer(LoadBalancerConfig(strategy=LoadBalancingStrategy.LEAST_LOADED))
    await balancer.add_node("default", client)

    node = await balancer.select_node_for_model("my-model")
    request = ChatCompletionRequest(
        model="my-model",
        messages=[ChatMessage(role="user", content="Hello")],
    )
    response = await node.client.chat_completion(request)
    print(response.to_dict())


asyncio.run(main())
```

`LocalLlmClient` itself raises `ModelNotSupportedError` for a model that is not
in its configuration, and `UnsupportedOperationError` otherwise. A subclass
overrides `chat_completion`, `text_completion` and `embeddings` to reach an
actual model server.

## Load balancing

`LoadBalancer.select_node_for_model` considers only active nodes whose client
serves the model, and returns `None` when there is none. Nodes can be
deactivated with `set_node_active`, and their metrics refreshed with
`update_node_metrics`. The capability-based strategy ranks nodes by
`capability_score`. That score rises with the model's context length and falls
with CPU and memory use and with the number of active requests.

## Streaming

A client that inherits from `StreamingLlmClient` and reports
`supports_streaming` in its capabilities is returned by `as_streaming`. Any
other client gives `None`. Its streaming methods return asynchronous
iterators of chunks.

With `create_chat_completion_stream(queue)`, a producer puts chunks or
exceptions on the queue and puts `None` to end the stream. An exception on
the queue is raised to the reader.

`collect_chat_completion_stream` takes the choices and roles from the first
chunk and joins the content of the chunks that follow. The role defaults to
`"assistant"`. `collect_text_completion_stream` joins the text of every chunk.
Both raise `RequestFailedError` on an empty stream. The collected response has
id `"stream-collected"`, model `"unknown"` and no usage.

## What this package does not do

It does not talk to a model server, run an HTTP API or read configuration
files. It provides the types, the client interface, stream collection and
node selection that such a service is built from.

## Running the tests

```
pip install .[test]
pytest
```