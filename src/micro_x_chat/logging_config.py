import sys
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

_CONSOLE_FORMAT = "<level>{level:<8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"


@runtime_checkable
class LogConsumer(Protocol):
    uses_terminal: bool

    def register(self, level: str) -> None: ...
    def describe(self, level: str) -> str: ...


class ConsoleLogConsumer:
    uses_terminal = True

    def __init__(self, stream: str = "stderr"):
        if stream not in ("stderr", "stdout"):
            raise ValueError(f"stream must be 'stderr' or 'stdout', got {stream!r}")
        self._stream = stream

    def register(self, level: str) -> None:
        logger.add(getattr(sys, self._stream), level=level, format=_CONSOLE_FORMAT)

    def describe(self, level: str) -> str:
        return f"console ({self._stream}, {level})"


class FileLogConsumer:
    """Chat log on disk. ``serialize`` writes one JSON record per line."""

    uses_terminal = False

    def __init__(
        self,
        path: str = "chat.log",
        rotation: str = "10 MB",
        retention: int = 3,
        serialize: bool = False,
    ):
        self._path = Path(path)
        self._rotation = rotation
        self._retention = retention
        self._serialize = serialize

    def register(self, level: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            self._path,
            level=level,
            format=_FILE_FORMAT,
            rotation=self._rotation,
            retention=self._retention,
            serialize=self._serialize,
            encoding="utf-8",
        )

    def describe(self, level: str) -> str:
        kind = "jsonl" if self._serialize else "text"
        return f"file ({self._path}, {level}, {kind})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
}

# Console output stays quiet by default so it does not interleave with the chat
_DEFAULT_CONSUMERS = [
    {"type": "console", "level": "WARNING"},
    {"type": "file", "path": "chat.log"},
]


def _known_level(name: Any, fallback: str, problems: list[str]) -> str:
    level = str(name).upper()
    try:
        logger.level(level)
    except ValueError:
        problems.append(f"unknown log level {name!r}, using {fallback}")
        return fallback
    return level


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
    *,
    console: bool = True,
) -> list[str]:
    """Replace every loguru sink with the configured consumers.

    Returns one description per registered consumer, for the startup banner.
    ``console=False`` skips consumers that write to the terminal, for the
    full-screen front end. A consumer with an unknown type or bad options is
    skipped with a warning rather than stopping startup.
    """
    logger.remove()
    problems: list[str] = []
    default_level = _known_level(level, "INFO", problems)

    if consumers is None:
        consumers = _DEFAULT_CONSUMERS

    descriptions: list[str] = []
    for config in consumers:
        sink_type = config.get("type", "")
        cls = _CONSUMER_TYPES.get(sink_type)
        if cls is None:
            problems.append(f"unknown log consumer type {sink_type!r}")
            continue
        if cls.uses_terminal and not console:
            continue

        kwargs = {k: v for k, v in config.items() if k not in ("type", "level")}
        sink_level = _known_level(config.get("level", default_level), default_level, problems)
        try:
            consumer = cls(**kwargs)
        except (TypeError, ValueError) as ex:
            problems.append(f"{sink_type} consumer: {ex}")
            continue

        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))

    # Reported after registration so the warnings reach the configured sinks
    for problem in problems:
        logger.warning(f"Logging setup: {problem}")

    return descriptions
