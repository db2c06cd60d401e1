from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from micro_x_chat.compaction import CompactionStrategy


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class CompletionRequest:
    model: str
    messages: tuple[Message, ...]

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_payload()).encode("utf-8")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> CompletionRequest:
        return cls(
            model=payload["model"],
            messages=tuple(
                Message(Role(m["role"]), m["content"]) for m in payload["messages"]
            ),
        )


class Transcript:
    """Append-only conversation history, resent in full on every completion call.

    Role alternation is the caller's job: the session appends a user turn
    before each call and an assistant turn after it. An optional system
    message seeded at construction always stays first.
    """

    def __init__(self, system_prompt: str | None = None):
        self._messages: list[Message] = []
        if system_prompt:
            self._messages.append(Message(Role.SYSTEM, system_prompt))

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def has_system_message(self) -> bool:
        return bool(self._messages) and self._messages[0].role is Role.SYSTEM

    @property
    def turn_count(self) -> int:
        return sum(1 for m in self._messages if m.role is Role.USER)

    def append_user_turn(self, text: str) -> Message:
        return self._append(Role.USER, text)

    def append_assistant_turn(self, text: str) -> Message:
        return self._append(Role.ASSISTANT, text)

    def build_request(
        self,
        model_id: str,
        compaction: CompactionStrategy | None = None,
    ) -> CompletionRequest:
        messages = list(self._messages)
        if compaction is not None:
            messages = compaction.compact(messages)
        return CompletionRequest(model=model_id, messages=tuple(messages))

    def _append(self, role: Role, text: str) -> Message:
        message = Message(role, text)
        self._messages.append(message)
        return message
