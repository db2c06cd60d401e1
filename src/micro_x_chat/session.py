from __future__ import annotations

from loguru import logger

from micro_x_chat.compaction import CompactionStrategy, NoneCompactionStrategy
from micro_x_chat.completion_client import CompletionClient
from micro_x_chat.response_extractor import extract
from micro_x_chat.transcript import Transcript

NO_RESPONSE_PLACEHOLDER = "[no response]"


def display_reply(reply: str) -> str:
    return reply if reply else NO_RESPONSE_PLACEHOLDER


class ChatSession:
    """One conversation: the transcript plus everything needed to extend it.

    Both front ends drive the same object; it is never used concurrently.
    """

    def __init__(
        self,
        *,
        transcript: Transcript,
        client: CompletionClient,
        model: str,
        headers: dict[str, str] | None = None,
        compaction: CompactionStrategy | None = None,
    ) -> None:
        self._transcript = transcript
        self._client = client
        self._model = model
        self._headers = headers
        self._compaction = compaction or NoneCompactionStrategy()

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def model(self) -> str:
        return self._model

    async def send(self, text: str) -> str:
        """Run one completion round trip for ``text`` and return the reply.

        A TransportError propagates after the user turn has been recorded;
        no assistant turn is appended in that case.
        """
        self._transcript.append_user_turn(text)
        request = self._transcript.build_request(self._model, self._compaction)
        logger.debug(
            f"Turn {self._transcript.turn_count}: model={request.model}, "
            f"messages={len(request.messages)} (transcript={len(self._transcript)})"
        )

        raw = await self._client.complete(request.to_json(), self._headers)

        reply = extract(raw)
        if not reply:
            logger.warning(f"Empty reply for turn {self._transcript.turn_count}")
        self._transcript.append_assistant_turn(reply)
        return reply
