import asyncio
import json

from micro_x_chat.session import ChatSession
from micro_x_chat.transcript import Transcript


def completion_body(*contents: str) -> bytes:
    return json.dumps({"choices": [{"message": {"role": "assistant", "content": c}} for c in contents]}).encode()


class FakeCompletionClient:
    """Returns queued bodies (or raises queued exceptions) and records every payload."""

    def __init__(self, *responses: bytes | Exception) -> None:
        self._responses = list(responses)
        self.payloads: list[dict] = []
        self.headers: list[dict | None] = []
        self.release: asyncio.Event | None = None

    async def complete(self, payload: bytes, headers: dict[str, str] | None = None) -> bytes:
        self.payloads.append(json.loads(payload))
        self.headers.append(headers)
        if self.release is not None:
            await self.release.wait()
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_session(client: FakeCompletionClient, system_prompt: str | None = None, **kwargs) -> ChatSession:
    return ChatSession(
        transcript=Transcript(system_prompt=system_prompt),
        client=client,  # type: ignore[arg-type]
        model="gpt-test",
        **kwargs,
    )
