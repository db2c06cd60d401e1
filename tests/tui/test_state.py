import unittest

from micro_x_chat.tui.state import (
    ClearInput,
    CompletionFailed,
    CompletionReceived,
    Exchange,
    KeyPress,
    Quit,
    RequestCompletion,
    Resize,
    ToggleScreen,
    UiState,
    history_lines,
    render_history,
    update,
)


class UpdateTests(unittest.TestCase):
    def test_resize_stores_geometry_only(self) -> None:
        state = UiState(history=(Exchange("q", "a"),))
        new_state, commands = update(state, Resize(120, 40))
        self.assertEqual((120, 40), (new_state.width, new_state.height))
        self.assertEqual(state.history, new_state.history)
        self.assertEqual([], commands)

    def test_quit_keys(self) -> None:
        for key in ("escape", "c-c"):
            with self.subTest(key=key):
                new_state, commands = update(UiState(), KeyPress(key))
                self.assertTrue(new_state.quitting)
                self.assertEqual([Quit()], commands)

    def test_quitting_state_ignores_further_events(self) -> None:
        state = UiState(quitting=True)
        self.assertEqual((state, []), update(state, KeyPress("enter", "Hello")))
        self.assertEqual((state, []), update(state, CompletionReceived("q", "a")))

    def test_toggle_screen(self) -> None:
        new_state, commands = update(UiState(full_screen=True), KeyPress("c-t"))
        self.assertFalse(new_state.full_screen)
        self.assertEqual([ToggleScreen(False)], commands)

        back, commands = update(new_state, KeyPress("c-t"))
        self.assertTrue(back.full_screen)
        self.assertEqual([ToggleScreen(True)], commands)

    def test_submit_requests_completion_and_clears_input(self) -> None:
        state = UiState(input_text="Hello")
        new_state, commands = update(state, KeyPress("enter", "Hello"))

        self.assertEqual("Hello", new_state.pending)
        self.assertEqual("", new_state.input_text)
        self.assertEqual([RequestCompletion("Hello"), ClearInput()], commands)
        self.assertEqual((), new_state.history)

    def test_submit_forwards_empty_text(self) -> None:
        _, commands = update(UiState(), KeyPress("enter", ""))
        self.assertEqual(RequestCompletion(""), commands[0])

    def test_submit_while_pending_is_ignored(self) -> None:
        state = UiState(pending="first")
        new_state, commands = update(state, KeyPress("enter", "second"))

        self.assertEqual("first", new_state.pending)
        self.assertEqual("second", new_state.input_text)
        self.assertEqual([], commands)

    def test_quit_and_resize_work_while_pending(self) -> None:
        state = UiState(pending="q")
        resized, _ = update(state, Resize(100, 30))
        self.assertEqual("q", resized.pending)

        quitting, commands = update(resized, KeyPress("escape"))
        self.assertTrue(quitting.quitting)
        self.assertEqual([Quit()], commands)

    def test_completion_received_appends_exchange(self) -> None:
        state = UiState(history=(Exchange("q0", "a0"),), pending="q1")
        new_state, commands = update(state, CompletionReceived("q1", "a1"))

        self.assertEqual((Exchange("q0", "a0"), Exchange("q1", "a1")), new_state.history)
        self.assertIsNone(new_state.pending)
        self.assertEqual([], commands)

    def test_completion_failed_appends_error_exchange(self) -> None:
        new_state, _ = update(UiState(pending="q"), CompletionFailed("q", "connection refused"))

        self.assertIsNone(new_state.pending)
        self.assertEqual(1, len(new_state.history))
        self.assertTrue(new_state.history[0].failed)
        self.assertIn("connection refused", new_state.history[0].answer)

    def test_other_keys_mirror_buffer_text(self) -> None:
        new_state, commands = update(UiState(), KeyPress("edit", "Hel"))
        self.assertEqual("Hel", new_state.input_text)
        self.assertEqual([], commands)


class RenderTests(unittest.TestCase):
    def test_history_lines(self) -> None:
        state = UiState(history=(Exchange("Hello", "Hi there"), Exchange("Again", "")))
        lines = history_lines(state)
        self.assertEqual(
            ["YOU: Hello", "AI: Hi there", "", "YOU: Again", "AI: [no response]", ""],
            lines,
        )

    def test_pending_question_shows_thinking(self) -> None:
        lines = history_lines(UiState(pending="Hello"))
        self.assertEqual("YOU: Hello", lines[0])
        self.assertTrue(lines[1].startswith("AI: "))
        self.assertIn("thinking", lines[1])

    def test_render_clips_to_viewport_height(self) -> None:
        history = tuple(Exchange(f"q{i}", f"a{i}") for i in range(20))
        state = UiState(history=history, width=80, height=10)

        rendered = render_history(state, chrome_lines=6).split("\n")

        self.assertEqual(4, len(rendered))
        self.assertEqual("", rendered[-1])
        self.assertEqual("AI: a19", rendered[-2])

    def test_render_wraps_long_lines(self) -> None:
        state = UiState(history=(Exchange("x" * 30, "ok"),), width=14, height=40)
        rendered = render_history(state, chrome_lines=6).split("\n")
        self.assertTrue(all(len(line) <= 10 for line in rendered))
        self.assertEqual("x" * 30, "".join(rendered)[len("YOU: "):len("YOU: ") + 30])


if __name__ == "__main__":
    unittest.main()
