from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union


def tool_call_completion(
    arguments: Union[Mapping[str, Any], str],
    *,
    name: str = "search_required",
    call_type: str = "function",
    finish_reason: str = "tool_calls",
) -> SimpleNamespace:
    """Build a chat completion shaped like one that ended in a single tool call."""

    raw_arguments = arguments if isinstance(arguments, str) else json.dumps(arguments)
    tool_call = SimpleNamespace(
        id="call_0",
        type=call_type,
        function=SimpleNamespace(name=name, arguments=raw_arguments),
    )
    message = SimpleNamespace(role="assistant", content=None, tool_calls=[tool_call])
    choice = SimpleNamespace(index=0, finish_reason=finish_reason, message=message)
    return SimpleNamespace(id="chatcmpl-fake", choices=[choice], usage=None)


def text_completion(content: str, *, finish_reason: str = "stop") -> SimpleNamespace:
    """Build a chat completion that answered with plain text."""

    message = SimpleNamespace(role="assistant", content=content, tool_calls=None)
    choice = SimpleNamespace(index=0, finish_reason=finish_reason, message=message)
    return SimpleNamespace(id="chatcmpl-fake", choices=[choice], usage=None)


class FakeCompletionService:
    """Scripted chat completion service that replays responses in order.

    Scripted items that are exceptions are raised instead of returned. The last
    item is repeated once the script runs out.
    """

    def __init__(self, responses: Iterable[Any]):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    async def complete(self, request: Dict[str, Any]) -> Any:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.requests)


class FakeSearchTransport:
    """Records outbound provider requests and answers with a fixed payload."""

    def __init__(self, payload: Optional[Any] = None, error: Optional[BaseException] = None):
        self.payload = payload if payload is not None else {}
        self.error = error
        self.requests: List[Any] = []

    async def __call__(self, request: Any) -> Any:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.payload

    @property
    def call_count(self) -> int:
        return len(self.requests)


__all__ = [
    "tool_call_completion",
    "text_completion",
    "FakeCompletionService",
    "FakeSearchTransport",
]
