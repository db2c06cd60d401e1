from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from loguru import logger


class MalformedResponseError(ValueError):
    """The response body is not a completion object."""


@dataclass(frozen=True)
class Choice:
    role: str
    content: str
    finish_reason: str | None = None
    index: int = 0


@dataclass(frozen=True)
class CompletionResponse:
    choices: tuple[Choice, ...]


def _decode(raw: bytes | str) -> Any:
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as ex:
        # JSONDecodeError and UnicodeDecodeError are ValueErrors; deep nesting recurses
        raise MalformedResponseError(f"Response is not valid JSON: {ex}") from ex


def _parse_choice(position: int, item: Any) -> Choice:
    if not isinstance(item, dict):
        raise MalformedResponseError(f"choices[{position}] is not an object")
    message = item.get("message")
    if not isinstance(message, dict):
        message = {}
    content = message.get("content")
    index = item.get("index", position)
    return Choice(
        role=str(message.get("role") or "assistant"),
        content=content if isinstance(content, str) else "",
        finish_reason=item.get("finish_reason"),
        index=index if isinstance(index, int) else position,
    )


def parse_response(raw: bytes | str) -> CompletionResponse:
    """Parse a chat completion body. Unknown fields (usage, id, ...) are ignored."""
    data = _decode(raw)
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")
    choices = data.get("choices")
    if not isinstance(choices, list):
        raise MalformedResponseError("Response has no 'choices' array")
    return CompletionResponse(choices=tuple(_parse_choice(i, c) for i, c in enumerate(choices)))


def extract(raw: bytes | str) -> str:
    """Return the text of every choice concatenated in array order.

    Never raises: a body that cannot be parsed yields an empty reply.
    """
    try:
        response = parse_response(raw)
    except MalformedResponseError as ex:
        error_message = extract_error_message(raw)
        if error_message:
            logger.warning(f"Completion failed: {error_message}")
        else:
            logger.warning(f"Malformed completion response: {ex}")
        return ""
    return "".join(choice.content for choice in response.choices)


def extract_error_message(raw: bytes | str) -> str | None:
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return str(message) if message else None
    if isinstance(error, str):
        return error
    return None
