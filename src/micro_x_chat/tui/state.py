"""State transitions for the full-screen chat interface.

``update`` is pure: it takes the current ``UiState`` and one event and
returns the next state plus the commands the runtime should carry out.
Text editing inside the input field belongs to the field itself; the state
only mirrors the buffer text it reports.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from micro_x_chat.session import display_reply

QUIT_KEYS = frozenset({"escape", "c-c"})
SUBMIT_KEY = "enter"
TOGGLE_SCREEN_KEY = "c-t"

QUIT_HINT = "esc / ctrl+c: quit   ctrl+t: toggle full screen   enter: send"

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


@dataclass(frozen=True)
class Exchange:
    question: str
    answer: str
    failed: bool = False


@dataclass(frozen=True)
class UiState:
    input_text: str = ""
    history: tuple[Exchange, ...] = ()
    width: int = 80
    height: int = 24
    pending: str | None = None
    quitting: bool = False
    full_screen: bool = True


# -- events --

@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class KeyPress:
    key: str
    buffer_text: str = ""


@dataclass(frozen=True)
class CompletionReceived:
    question: str
    answer: str


@dataclass(frozen=True)
class CompletionFailed:
    question: str
    error: str


Event = Resize | KeyPress | CompletionReceived | CompletionFailed


# -- commands --

@dataclass(frozen=True)
class RequestCompletion:
    question: str


@dataclass(frozen=True)
class ClearInput:
    pass


@dataclass(frozen=True)
class ToggleScreen:
    full_screen: bool


@dataclass(frozen=True)
class Quit:
    pass


Command = RequestCompletion | ClearInput | ToggleScreen | Quit


def update(state: UiState, event: Event) -> tuple[UiState, list[Command]]:
    if state.quitting:
        return state, []

    if isinstance(event, Resize):
        return replace(state, width=event.width, height=event.height), []

    if isinstance(event, KeyPress):
        return _on_key(state, event)

    if isinstance(event, CompletionReceived):
        exchange = Exchange(event.question, event.answer)
        return replace(state, history=state.history + (exchange,), pending=None), []

    if isinstance(event, CompletionFailed):
        exchange = Exchange(event.question, f"[error: {event.error}]", failed=True)
        return replace(state, history=state.history + (exchange,), pending=None), []

    return state, []


def _on_key(state: UiState, event: KeyPress) -> tuple[UiState, list[Command]]:
    if event.key in QUIT_KEYS:
        return replace(state, quitting=True), [Quit()]

    if event.key == TOGGLE_SCREEN_KEY:
        full_screen = not state.full_screen
        return replace(state, full_screen=full_screen), [ToggleScreen(full_screen)]

    if event.key == SUBMIT_KEY:
        if state.pending is not None:
            # One round trip at a time; keep the typed text for later
            return replace(state, input_text=event.buffer_text), []
        question = event.buffer_text
        return (
            replace(state, input_text="", pending=question),
            [RequestCompletion(question), ClearInput()],
        )

    return replace(state, input_text=event.buffer_text), []


def history_lines(state: UiState, spinner_tick: int = 0) -> list[str]:
    lines: list[str] = []
    for exchange in state.history:
        lines.append(f"YOU: {exchange.question}")
        lines.append(f"AI: {display_reply(exchange.answer)}")
        lines.append("")
    if state.pending is not None:
        lines.append(f"YOU: {state.pending}")
        lines.append(f"AI: {_SPINNER_FRAMES[spinner_tick % len(_SPINNER_FRAMES)]} thinking...")
    return lines


def render_history(state: UiState, spinner_tick: int = 0, chrome_lines: int = 7) -> str:
    """Chat panel text clipped to the rows left once borders, input and hint are drawn."""
    visible_rows = max(1, state.height - chrome_lines)
    lines = _wrap(history_lines(state, spinner_tick), max(1, state.width - 4))
    return "\n".join(lines[-visible_rows:])


def _wrap(lines: list[str], width: int) -> list[str]:
    wrapped: list[str] = []
    for line in lines:
        for part in line.split("\n"):
            if not part:
                wrapped.append("")
                continue
            while len(part) > width:
                wrapped.append(part[:width])
                part = part[width:]
            wrapped.append(part)
    return wrapped
