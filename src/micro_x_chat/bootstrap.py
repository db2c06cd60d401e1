from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from micro_x_chat.app_config import AppConfig, RuntimeEnv, build_endpoint_config
from micro_x_chat.compaction import create_compaction_strategy
from micro_x_chat.completion_client import CompletionClient
from micro_x_chat.logging_config import setup_logging
from micro_x_chat.session import ChatSession
from micro_x_chat.transcript import Transcript


@dataclass
class AppRuntime:
    session: ChatSession
    log_descriptions: list[str]


def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(
        level=app.log_level,
        consumers=app.log_consumers,
        console=app.interface != "interactive",
    )

    if not env.api_key:
        # Not fatal: the endpoint rejects the empty token on the first call
        logger.warning(f"{env.api_key_env_var} is not set; requests will be unauthorized.")

    endpoint = build_endpoint_config(app, env)
    session = ChatSession(
        transcript=Transcript(system_prompt=app.system_prompt or None),
        client=CompletionClient(endpoint, timeout_seconds=app.request_timeout_seconds),
        model=app.model,
        headers=endpoint.headers(),
        compaction=create_compaction_strategy(
            app.compaction_strategy_name,
            max_messages=app.max_conversation_messages,
            max_estimated_tokens=app.max_estimated_tokens,
        ),
    )
    logger.info(
        f"Session ready: model={app.model}, endpoint={app.endpoint_url}, "
        f"interface={app.interface}, compaction={app.compaction_strategy_name}"
    )
    return AppRuntime(session=session, log_descriptions=log_descriptions)
