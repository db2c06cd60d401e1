from __future__ import annotations

import asyncio
import contextlib
import time

from loguru import logger
from prompt_toolkit.application import Application
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame, TextArea

from micro_x_chat.completion_client import TransportError
from micro_x_chat.session import ChatSession
from micro_x_chat.tui.state import (
    QUIT_HINT,
    QUIT_KEYS,
    TOGGLE_SCREEN_KEY,
    ClearInput,
    Command,
    CompletionFailed,
    CompletionReceived,
    Event,
    KeyPress,
    Quit,
    RequestCompletion,
    Resize,
    ToggleScreen,
    UiState,
    render_history,
    update,
)

_TITLE = "micro-x-chat"
# Chat frame borders (2) + input frame (3) + hint line (1)
_CHROME_ROWS = 6
_REFRESH_SECONDS = 0.1

_EXIT_QUIT = "quit"
_EXIT_TOGGLE = "toggle"

_STYLE = Style.from_dict({
    "frame.border": "ansicyan",
    "hint": "ansibrightblack",
})


class InteractiveChat:
    """Runs the chat state machine inside a prompt_toolkit application.

    Completion round trips run as asyncio tasks and report back through
    ``dispatch``, so the interface keeps handling quit and resize while a
    request is in flight.
    """

    def __init__(self, session: ChatSession, *, full_screen: bool = True) -> None:
        self._session = session
        self._state = UiState(full_screen=full_screen)
        self._app: Application | None = None
        self._input: TextArea | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> UiState:
        return self._state

    async def run(self) -> int:
        try:
            while True:
                self._app = self._create_application()
                try:
                    result = await self._app.run_async()
                except Exception as ex:
                    logger.error(f"Interactive interface failed: {ex}")
                    return 1
                if result != _EXIT_TOGGLE:
                    return 0
                logger.debug(f"Switching full screen {'on' if self._state.full_screen else 'off'}")
        finally:
            await self._cancel_pending()

    def dispatch(self, event: Event) -> None:
        self._state, commands = update(self._state, event)
        for command in commands:
            self._execute(command)
        if self._app is not None:
            self._app.invalidate()

    def _execute(self, command: Command) -> None:
        if isinstance(command, RequestCompletion):
            task = asyncio.get_running_loop().create_task(self._complete(command.question))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif isinstance(command, ClearInput):
            if self._input is not None:
                self._input.text = ""
        elif isinstance(command, ToggleScreen):
            self._exit(_EXIT_TOGGLE)
        elif isinstance(command, Quit):
            self._exit(_EXIT_QUIT)

    async def _complete(self, question: str) -> None:
        try:
            reply = await self._session.send(question)
        except TransportError as ex:
            self.dispatch(CompletionFailed(question, str(ex)))
            return
        except Exception as ex:
            logger.exception(f"Completion failed: {type(ex).__name__}: {ex}")
            self.dispatch(CompletionFailed(question, str(ex) or type(ex).__name__))
            return
        self.dispatch(CompletionReceived(question, reply))

    def _exit(self, result: str) -> None:
        if self._app is not None and self._app.is_running:
            self._app.exit(result=result)

    async def _cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()

    def _create_application(self) -> Application:
        self._input = TextArea(
            text=self._state.input_text,
            multiline=False,
            prompt="> ",
            accept_handler=self._on_accept,
        )
        self._input.buffer.on_text_changed += self._on_text_changed

        chat_panel = Frame(
            Window(FormattedTextControl(self._history_text), wrap_lines=False),
            title=_TITLE,
        )
        hint = Window(FormattedTextControl(QUIT_HINT), height=1, style="class:hint")

        kb = KeyBindings()
        for key in (*sorted(QUIT_KEYS), TOGGLE_SCREEN_KEY):
            kb.add(key, eager=True)(self._key_handler(key))

        app = Application(
            layout=Layout(HSplit([chat_panel, Frame(self._input), hint]), focused_element=self._input),
            key_bindings=kb,
            style=_STYLE,
            full_screen=self._state.full_screen,
            refresh_interval=_REFRESH_SECONDS,
        )
        app.before_render += self._on_before_render
        return app

    def _key_handler(self, key: str):
        def handler(event) -> None:
            self.dispatch(KeyPress(key, self._buffer_text()))

        return handler

    def _history_text(self) -> str:
        tick = int(time.monotonic() / _REFRESH_SECONDS)
        return render_history(self._state, spinner_tick=tick, chrome_lines=_CHROME_ROWS)

    def _buffer_text(self) -> str:
        return self._input.text if self._input is not None else ""

    def _on_accept(self, buffer: Buffer) -> bool:
        self.dispatch(KeyPress("enter", buffer.text))
        # Clearing is driven by ClearInput so a blocked submit keeps its text
        return True

    def _on_text_changed(self, buffer: Buffer) -> None:
        self._state, _ = update(self._state, KeyPress("edit", buffer.text))

    def _on_before_render(self, app: Application) -> None:
        size = app.output.get_size()
        if (size.columns, size.rows) != (self._state.width, self._state.height):
            self._state, _ = update(self._state, Resize(size.columns, size.rows))


async def run_interactive(session: ChatSession, *, full_screen: bool = True) -> int:
    return await InteractiveChat(session, full_screen=full_screen).run()
