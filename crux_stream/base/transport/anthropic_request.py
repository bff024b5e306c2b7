"""Translation of a chat completions request into an Anthropic messages body.

The engine speaks one request schema (:class:`ChatCompletionRequest`); the
HTTP transport converts it for vendors using the Anthropic dialect:

- ``system`` messages are joined into the top-level ``system`` string.
- ``tool`` messages become ``tool_result`` blocks of a ``user`` turn.
- assistant tool calls become ``tool_use`` blocks.
- image parts become ``image`` blocks (base64 data URLs or plain URLs).
- ``max_tokens`` is mandatory for Anthropic and defaults to
  :data:`ANTHROPIC_DEFAULT_MAX_TOKENS`.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from ..wire.openai_wire import (
    AssistantMessage,
    ChatCompletionRequest,
    ImageContentPart,
    SystemMessage,
    TextContentPart,
    ToolChoiceFunction,
    ToolMessage,
    UserMessage,
)

ANTHROPIC_DEFAULT_MAX_TOKENS = 4096

_TOOL_CHOICES = {"auto": {"type": "auto"}, "required": {"type": "any"}, "none": {"type": "none"}}


def _image_block(part: ImageContentPart) -> Dict[str, Any]:
    url = part.image_url.url
    if url.startswith("data:") and ";base64," in url:
        header, data = url.split(";base64,", 1)
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": header[len("data:"):], "data": data},
        }
    return {"type": "image", "source": {"type": "url", "url": url}}


def _user_content(message: UserMessage) -> Any:
    if isinstance(message.content, str):
        return message.content
    blocks: List[Dict[str, Any]] = []
    for part in message.content:
        if isinstance(part, TextContentPart):
            blocks.append({"type": "text", "text": part.text})
        elif isinstance(part, ImageContentPart):
            blocks.append(_image_block(part))
    return blocks


def _parse_arguments(arguments: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(arguments) if arguments else {}
    except ValueError:
        return {"_raw": arguments}
    return parsed if isinstance(parsed, dict) else {"value": parsed}


def _assistant_content(message: AssistantMessage) -> List[Dict[str, Any]]:
    blocks: List[Dict[str, Any]] = []
    if message.content:
        blocks.append({"type": "text", "text": message.content})
    for call in message.tool_calls or ():
        blocks.append(
            {
                "type": "tool_use",
                "id": call.id,
                "name": call.function.name,
                "input": _parse_arguments(call.function.arguments),
            }
        )
    return blocks


def _messages(request: ChatCompletionRequest) -> tuple[Optional[str], List[Dict[str, Any]]]:
    system_parts: List[str] = []
    messages: List[Dict[str, Any]] = []
    for message in request.messages:
        if isinstance(message, SystemMessage):
            system_parts.append(message.content)
        elif isinstance(message, UserMessage):
            messages.append({"role": "user", "content": _user_content(message)})
        elif isinstance(message, AssistantMessage):
            messages.append({"role": "assistant", "content": _assistant_content(message)})
        elif isinstance(message, ToolMessage):
            messages.append(
                {
                    "role": "user",
                    "content": [
                        {"type": "tool_result", "tool_use_id": message.tool_call_id, "content": message.content}
                    ],
                }
            )
    system = "\n\n".join(system_parts) if system_parts else None
    return system, messages


def _tool_choice(choice: Any) -> Optional[Dict[str, Any]]:
    if choice is None:
        return None
    if isinstance(choice, ToolChoiceFunction):
        return {"type": "tool", "name": choice.function.name}
    return _TOOL_CHOICES.get(choice)


def to_anthropic_body(request: ChatCompletionRequest) -> Dict[str, Any]:
    """Return the ``POST /messages`` JSON body for ``request``."""
    system, messages = _messages(request)
    body: Dict[str, Any] = {
        "model": request.model,
        "messages": messages,
        "max_tokens": request.max_tokens or ANTHROPIC_DEFAULT_MAX_TOKENS,
        "stream": True,
    }
    if system:
        body["system"] = system
    if request.temperature is not None:
        body["temperature"] = request.temperature
    if request.top_p is not None:
        body["top_p"] = request.top_p
    if request.stop:
        body["stop_sequences"] = list(request.stop)
    if request.tools:
        body["tools"] = [
            {
                "name": tool.function.name,
                "description": tool.function.description or "",
                "input_schema": (
                    tool.function.parameters.model_dump(exclude_none=True)
                    if tool.function.parameters is not None
                    else {"type": "object", "properties": {}}
                ),
            }
            for tool in request.tools
        ]
    choice = _tool_choice(request.tool_choice)
    if choice is not None:
        body["tool_choice"] = choice
    return body


__all__ = ["ANTHROPIC_DEFAULT_MAX_TOKENS", "to_anthropic_body"]
