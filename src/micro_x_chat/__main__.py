import asyncio
import signal
import sys

from dotenv import load_dotenv
from loguru import logger

from micro_x_chat.app_config import ConfigError, load_json_config, parse_app_config, resolve_runtime_env
from micro_x_chat.bootstrap import bootstrap_runtime
from micro_x_chat.completion_client import TransportError
from micro_x_chat.line_mode import LineModeLoop
from micro_x_chat.tui.app import run_interactive


async def main() -> int:
    load_dotenv()

    try:
        app = parse_app_config(load_json_config())
    except ConfigError as ex:
        logger.error(f"Configuration error: {ex}")
        return 1

    runtime = bootstrap_runtime(app, resolve_runtime_env(app.api_key_env_var))

    if app.interface == "interactive":
        return await run_interactive(runtime.session, full_screen=app.full_screen)

    print("Started new chat session. Press Ctrl+C to stop.")
    print(f"Model: {app.model}")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    try:
        await LineModeLoop(runtime.session, show_spinner=app.show_spinner).run()
    except TransportError as ex:
        logger.error(f"Chat stopped: {ex}")
        return 1
    return 0


def _raise_keyboard_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def run() -> None:
    # SIGTERM ends the session the same way Ctrl+C does
    signal.signal(signal.SIGTERM, _raise_keyboard_interrupt)
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        exit_code = 0
    print("\nChat has ended.")
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
