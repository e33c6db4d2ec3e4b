"""Request and response types for chat, text and embedding operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union


def _require(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _sampling_to_dict(request: Any) -> dict[str, Any]:
    """The optional sampling fields of a request, leaving out those that are unset."""
    values = {
        "max_tokens": request.max_tokens,
        "temperature": request.temperature,
        "top_p": request.top_p,
        "stream": request.stream,
    }
    return {key: value for key, value in values.items() if value is not None}


def _sampling_from_dict(data: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "max_tokens": data.get("max_tokens"),
        "temperature": _optional_float(data.get("temperature")),
        "top_p": _optional_float(data.get("top_p")),
        "stream": data.get("stream"),
        "additional_params": dict(data.get("additional_params") or {}),
    }


def _usage_to_dict(usage: Optional[UsageInfo]) -> Optional[dict[str, Any]]:
    return None if usage is None else usage.to_dict()


def _usage_from_dict(data: Mapping[str, Any]) -> Optional[UsageInfo]:
    raw = data.get("usage")
    return None if raw is None else UsageInfo.from_dict(raw)


@dataclass
class ChatMessage:
    """A single message in a conversation."""

    role: str
    content: str
    name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name is not None:
            out["name"] = self.name
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatMessage:
        return cls(
            role=_require(data, "role"),
            content=_require(data, "content"),
            name=data.get("name"),
        )


@dataclass
class UsageInfo:
    """Token usage of a request."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UsageInfo:
        return cls(
            prompt_tokens=int(_require(data, "prompt_tokens")),
            completion_tokens=int(_require(data, "completion_tokens")),
            total_tokens=int(_require(data, "total_tokens")),
        )


@dataclass
class ChatCompletionRequest:
    """A request for a chat completion."""

    model: str = ""
    messages: list[ChatMessage] = field(default_factory=list)
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    stream: Optional[bool] = None
    additional_params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_dict() for message in self.messages],
            **_sampling_to_dict(self),
        }
        if self.additional_params:
            out["additional_params"] = dict(self.additional_params)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatCompletionRequest:
        return cls(
            model=_require(data, "model"),
            messages=[ChatMessage.from_dict(item) for item in _require(data, "messages")],
            **_sampling_from_dict(data),
        )


@dataclass
class ChatCompletionChoice:
    """One generated chat message."""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "message": self.message.to_dict(),
            "finish_reason": self.finish_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatCompletionChoice:
        return cls(
            index=int(_require(data, "index")),
            message=ChatMessage.from_dict(_require(data, "message")),
            finish_reason=data.get("finish_reason"),
        )


@dataclass
class ChatCompletionResponse:
    """The result of a chat completion."""

    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[ChatCompletionChoice] = field(default_factory=list)
    usage: Optional[UsageInfo] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "choices": [choice.to_dict() for choice in self.choices],
            "usage": _usage_to_dict(self.usage),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatCompletionResponse:
        return cls(
            id=_require(data, "id"),
            object=_require(data, "object"),
            created=int(_require(data, "created")),
            model=_require(data, "model"),
            choices=[ChatCompletionChoice.from_dict(c) for c in _require(data, "choices")],
            usage=_usage_from_dict(data),
        )


@dataclass
class TextCompletionRequest:
    """A request for a text completion."""

    model: str = ""
    prompt: str = ""
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    stream: Optional[bool] = None
    additional_params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "model": self.model,
            "prompt": self.prompt,
            **_sampling_to_dict(self),
        }
        if self.additional_params:
            out["additional_params"] = dict(self.additional_params)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TextCompletionRequest:
        return cls(
            model=_require(data, "model"),
            prompt=_require(data, "prompt"),
            **_sampling_from_dict(data),
        )


@dataclass
class TextCompletionChoice:
    """One generated text."""

    index: int
    text: str
    finish_reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "text": self.text, "finish_reason": self.finish_reason}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TextCompletionChoice:
        return cls(
            index=int(_require(data, "index")),
            text=str(_require(data, "text")),
            finish_reason=data.get("finish_reason"),
        )


@dataclass
class TextCompletionResponse:
    """The result of a text completion."""

    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[TextCompletionChoice] = field(default_factory=list)
    usage: Optional[UsageInfo] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "choices": [choice.to_dict() for choice in self.choices],
            "usage": _usage_to_dict(self.usage),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TextCompletionResponse:
        return cls(
            id=_require(data, "id"),
            object=_require(data, "object"),
            created=int(_require(data, "created")),
            model=_require(data, "model"),
            choices=[TextCompletionChoice.from_dict(c) for c in _require(data, "choices")],
            usage=_usage_from_dict(data),
        )


@dataclass
class EmbeddingRequest:
    """A request for embeddings of one or more inputs."""

    model: str = ""
    input: list[str] = field(default_factory=list)
    additional_params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"model": self.model, "input": list(self.input)}
        if self.additional_params:
            out["additional_params"] = dict(self.additional_params)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmbeddingRequest:
        return cls(
            model=_require(data, "model"),
            input=list(_require(data, "input")),
            additional_params=dict(data.get("additional_params") or {}),
        )


@dataclass
class EmbeddingData:
    """One embedding vector."""

    index: int
    embedding: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "embedding": list(self.embedding)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmbeddingData:
        return cls(
            index=int(_require(data, "index")),
            embedding=[float(x) for x in _require(data, "embedding")],
        )


@dataclass
class EmbeddingResponse:
    """The result of an embedding request."""

    object: str = ""
    model: str = ""
    data: list[EmbeddingData] = field(default_factory=list)
    usage: Optional[UsageInfo] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "object": self.object,
            "model": self.model,
            "data": [item.to_dict() for item in self.data],
            "usage": _usage_to_dict(self.usage),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmbeddingResponse:
        return cls(
            object=_require(data, "object"),
            model=_require(data, "model"),
            data=[EmbeddingData.from_dict(item) for item in _require(data, "data")],
            usage=_usage_from_dict(data),
        )


LlmRequest = Union[ChatCompletionRequest, TextCompletionRequest, EmbeddingRequest]
LlmResponse = Union[ChatCompletionResponse, TextCompletionResponse, EmbeddingResponse]

_REQUEST_TYPES = {
    "chat.completion": ChatCompletionRequest,
    "text.completion": TextCompletionRequest,
    "embedding": EmbeddingRequest,
}

_RESPONSE_TYPES = {
    "chat.completion": ChatCompletionResponse,
    "text.completion": TextCompletionResponse,
    "embedding": EmbeddingResponse,
}


def _encode_tagged(value: Any, types: Mapping[str, type]) -> dict[str, Any]:
    for tag, cls in types.items():
        if isinstance(value, cls):
            return {"type": tag, **value.to_dict()}
    raise TypeError(f"cannot encode value of type {type(value).__name__}")


def _decode_tagged(data: Mapping[str, Any], types: Mapping[str, Any]) -> Any:
    tag = _require(data, "type")
    cls = types.get(tag)
    if cls is None:
        expected = ", ".join(f"`{name}`" for name in types)
        raise ValueError(f"unknown variant `{tag}`, expected one of {expected}")
    return cls.from_dict(data)


def encode_request(request: LlmRequest) -> dict[str, Any]:
    """Encode a request as a dict tagged with its ``type``."""
    return _encode_tagged(request, _REQUEST_TYPES)


def decode_request(data: Mapping[str, Any]) -> LlmRequest:
    """Decode a request from a dict tagged with its ``type``."""
    return _decode_tagged(data, _REQUEST_TYPES)


def encode_response(response: LlmResponse) -> dict[str, Any]:
    """Encode a response as a dict tagged with its ``type``."""
    return _encode_tagged(response, _RESPONSE_TYPES)


def decode_response(data: Mapping[str, Any]) -> LlmResponse:
    """Decode a response from a dict tagged with its ``type``."""
    return _decode_tagged(data, _RESPONSE_TYPES)