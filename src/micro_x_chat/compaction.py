from typing import Protocol, runtime_checkable

from loguru import logger

from micro_x_chat.transcript import Message, Role


@runtime_checkable
class CompactionStrategy(Protocol):
    def compact(self, messages: list[Message]) -> list[Message]: ...


class NoneCompactionStrategy:
    def compact(self, messages: list[Message]) -> list[Message]:
        return messages


class WindowCompactionStrategy:
    """Send only the most recent part of the conversation.

    The transcript itself is left alone; only the outbound message list is
    narrowed. A leading system message is always kept, the newest message is
    never dropped, and the window never opens on an assistant message.
    A limit of 0 disables that limit.
    """

    def __init__(self, max_messages: int = 50, max_estimated_tokens: int = 0):
        self._max_messages = max_messages
        self._max_estimated_tokens = max_estimated_tokens

    def compact(self, messages: list[Message]) -> list[Message]:
        head: list[Message] = []
        body = list(messages)
        if body and body[0].role is Role.SYSTEM:
            head = [body.pop(0)]

        dropped = 0
        while len(body) > 1 and self._over_limit(head + body):
            body.pop(0)
            dropped += 1
            # Keep the window aligned on a user turn
            while len(body) > 1 and body[0].role is Role.ASSISTANT:
                body.pop(0)
                dropped += 1

        if dropped:
            logger.info(
                f"Request window - omitted {dropped} oldest message(s), "
                f"sending {len(head) + len(body)} of {len(messages)}"
            )
        return head + body

    def _over_limit(self, messages: list[Message]) -> bool:
        if self._max_messages > 0 and len(messages) > self._max_messages:
            return True
        if self._max_estimated_tokens > 0 and estimate_tokens(messages) > self._max_estimated_tokens:
            return True
        return False


def estimate_tokens(messages: list[Message]) -> int:
    return sum(len(m.content) for m in messages) // 4


def create_compaction_strategy(
    name: str,
    max_messages: int = 50,
    max_estimated_tokens: int = 0,
) -> CompactionStrategy:
    if name == "window":
        return WindowCompactionStrategy(max_messages, max_estimated_tokens)
    return NoneCompactionStrategy()
