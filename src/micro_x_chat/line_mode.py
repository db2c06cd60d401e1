from __future__ import annotations

import itertools
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TextIO

from loguru import logger

from micro_x_chat.session import ChatSession, display_reply

_FRAMES = "|/-\\"


class ThinkingSpinner:
    """Animates ``AI: | thinking`` on the current line while a completion runs.

    The first frame is drawn synchronously by ``start``; later frames come from
    a daemon thread. ``stop`` blanks the line and returns the cursor to column 0
    so the reply is printed where the spinner was.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        *,
        prefix: str = "",
        label: str = "thinking",
        interval: float = 0.1,
    ):
        self._stream = stream if stream is not None else sys.stdout
        self._prefix = prefix
        self._label = label
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._drawn_width = 0

    def start(self) -> None:
        frames = itertools.cycle(_FRAMES)
        if not self._draw(next(frames)):
            return
        self._thread = threading.Thread(target=self._animate, args=(frames,), daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        if self._drawn_width:
            self._stream.write("\r" + " " * self._drawn_width + "\r")
            self._stream.flush()

    def _animate(self, frames: Iterator[str]) -> None:
        while not self._stop.wait(self._interval):
            if not self._draw(next(frames)):
                return

    def _draw(self, frame: str) -> bool:
        text = f"{self._prefix}{frame} {self._label}"
        try:
            self._stream.write("\r" + text)
            self._stream.flush()
        except (UnicodeEncodeError, OSError) as ex:
            logger.debug(f"Spinner disabled: {ex}")
            return False
        self._drawn_width = max(self._drawn_width, len(text))
        return True


@contextmanager
def thinking_spinner(stream: TextIO | None = None, *, prefix: str = "") -> Iterator[ThinkingSpinner]:
    spinner = ThinkingSpinner(stream, prefix=prefix)
    spinner.start()
    try:
        yield spinner
    finally:
        spinner.stop()


class LineModeLoop:
    _USER_PROMPT = "YOU: "
    _LINE_PREFIX = "AI: "

    def __init__(
        self,
        session: ChatSession,
        *,
        read_line: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
        show_spinner: bool = False,
        spinner_stream: TextIO | None = None,
    ) -> None:
        self._session = session
        self._read_line = read_line
        self._write = write
        self._show_spinner = show_spinner
        self._spinner_stream = spinner_stream

    async def run(self) -> None:
        """Read, complete, render, repeat until input ends or is interrupted.

        TransportError is not caught here: a failed completion ends the loop.
        """
        while True:
            try:
                line = self._read_line(self._USER_PROMPT)
            except (EOFError, KeyboardInterrupt):
                logger.debug("Input closed; leaving line mode")
                return

            # strip only the line terminator
            question = line.removesuffix("\n").removesuffix("\r")
            reply = await self._complete(question)
            self._write(f"{self._LINE_PREFIX}{display_reply(reply)}\n")

    async def _complete(self, question: str) -> str:
        if not self._show_spinner:
            return await self._session.send(question)
        with thinking_spinner(self._spinner_stream, prefix=self._LINE_PREFIX):
            return await self._session.send(question)
