import json
import unittest

from micro_x_chat.compaction import WindowCompactionStrategy
from micro_x_chat.transcript import CompletionRequest, Message, Role, Transcript


class TranscriptTests(unittest.TestCase):
    def test_empty_transcript_without_system_prompt(self) -> None:
        transcript = Transcript()
        self.assertEqual(0, len(transcript))
        self.assertFalse(transcript.has_system_message)

    def test_system_prompt_seeds_leading_message(self) -> None:
        transcript = Transcript(system_prompt="Be brief.")
        transcript.append_user_turn("hi")
        transcript.append_assistant_turn("hello")
        self.assertEqual(Message(Role.SYSTEM, "Be brief."), transcript.messages[0])
        self.assertTrue(transcript.has_system_message)

    def test_n_turns_alternate_user_and_assistant(self) -> None:
        lines = ["first", "second", "", "fourth"]
        transcript = Transcript(system_prompt="sys")
        for i, line in enumerate(lines):
            transcript.append_user_turn(line)
            transcript.append_assistant_turn(f"reply {i}")

        self.assertEqual(2 * len(lines) + 1, len(transcript))
        body = transcript.messages[1:]
        self.assertEqual([Role.USER, Role.ASSISTANT] * len(lines), [m.role for m in body])
        self.assertEqual(lines, [m.content for m in body if m.role is Role.USER])
        self.assertEqual(len(lines), transcript.turn_count)

    def test_messages_are_immutable(self) -> None:
        message = Transcript().append_user_turn("x")
        with self.assertRaises(AttributeError):
            message.content = "y"  # type: ignore[misc]

    def test_build_request_snapshots_transcript(self) -> None:
        transcript = Transcript()
        transcript.append_user_turn("one")
        request = transcript.build_request("gpt-test")
        transcript.append_assistant_turn("two")

        self.assertEqual("gpt-test", request.model)
        self.assertEqual(1, len(request.messages))
        self.assertEqual(2, len(transcript))

    def test_build_request_applies_compaction_without_touching_transcript(self) -> None:
        transcript = Transcript()
        for i in range(5):
            transcript.append_user_turn(f"q{i}")
            transcript.append_assistant_turn(f"a{i}")
        transcript.append_user_turn("latest")

        request = transcript.build_request("m", WindowCompactionStrategy(max_messages=3))

        self.assertEqual(11, len(transcript))
        self.assertEqual("latest", request.messages[-1].content)
        self.assertLessEqual(len(request.messages), 3)


class CompletionRequestTests(unittest.TestCase):
    def test_payload_shape(self) -> None:
        transcript = Transcript(system_prompt="sys")
        transcript.append_user_turn("Hello")
        payload = transcript.build_request("gpt-3.5-turbo").to_payload()

        self.assertEqual(
            {
                "model": "gpt-3.5-turbo",
                "messages": [
                    {"role": "system", "content": "sys"},
                    {"role": "user", "content": "Hello"},
                ],
            },
            payload,
        )

    def test_json_round_trip_preserves_order_role_and_content(self) -> None:
        transcript = Transcript(system_prompt="persona")
        transcript.append_user_turn("héllo \"quoted\"")
        transcript.append_assistant_turn("line1\nline2")
        transcript.append_user_turn("")
        request = transcript.build_request("m")

        restored = CompletionRequest.from_payload(json.loads(request.to_json()))

        self.assertEqual(request, restored)
        self.assertEqual(transcript.messages, restored.messages)


if __name__ == "__main__":
    unittest.main()
