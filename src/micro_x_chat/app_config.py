from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from micro_x_chat.completion_client import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_ENDPOINT,
    DEFAULT_METHOD,
    EndpointConfig,
)
from micro_x_chat.system_prompt import build_system_prompt

_INTERFACES = {"line", "interactive"}
_COMPACTION_STRATEGIES = {"none", "window"}


class ConfigError(ValueError):
    """config.json holds a value the client cannot use."""


@dataclass
class RuntimeEnv:
    api_key: str
    api_key_env_var: str


@dataclass
class AppConfig:
    model: str
    endpoint_url: str
    http_method: str
    content_type: str
    api_key_env_var: str
    system_prompt: str
    interface: str
    full_screen: bool
    request_timeout_seconds: float | None
    show_spinner: bool
    compaction_strategy_name: str
    max_conversation_messages: int
    max_estimated_tokens: int
    log_level: str
    log_consumers: list | None


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as ex:
                raise ConfigError(f"{config_path} is not valid JSON: {ex}") from ex
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")
        return data
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def _to_timeout(value: object) -> float | None:
    if value is None:
        return None
    seconds = float(value)
    return seconds if seconds > 0 else None


def _system_prompt(config: dict) -> str:
    # An explicit empty SystemPrompt sends no system message at all
    if "SystemPrompt" in config:
        return str(config["SystemPrompt"] or "")
    return build_system_prompt(config.get("SystemInstructions"))


def _choice(config: dict, key: str, default: str, allowed: set[str]) -> str:
    value = str(config.get(key, default)).strip().lower()
    if value not in allowed:
        raise ConfigError(f"{key} must be one of {sorted(allowed)}, got {value!r}")
    return value


def parse_app_config(config: dict) -> AppConfig:
    try:
        return AppConfig(
            model=str(config.get("Model", "gpt-3.5-turbo")),
            endpoint_url=str(config.get("Endpoint", DEFAULT_ENDPOINT)),
            http_method=str(config.get("HttpMethod", DEFAULT_METHOD)).strip().upper(),
            content_type=str(config.get("ContentType", DEFAULT_CONTENT_TYPE)),
            api_key_env_var=str(config.get("ApiKeyEnvVar", "OPENAI_API_KEY")),
            system_prompt=_system_prompt(config),
            interface=_choice(config, "Interface", "line", _INTERFACES),
            full_screen=_to_bool(config.get("FullScreen", True), default=True),
            request_timeout_seconds=_to_timeout(config.get("RequestTimeoutSeconds", 60)),
            show_spinner=_to_bool(config.get("ShowSpinner", True), default=True),
            compaction_strategy_name=_choice(config, "CompactionStrategy", "none", _COMPACTION_STRATEGIES),
            max_conversation_messages=int(config.get("MaxConversationMessages", 50)),
            max_estimated_tokens=int(config.get("MaxEstimatedTokens", 0)),
            log_level=str(config.get("LogLevel", "INFO")).upper(),
            log_consumers=config.get("LogConsumers"),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as ex:
        raise ConfigError(f"Invalid config value: {ex}") from ex


def resolve_runtime_env(api_key_env_var: str = "OPENAI_API_KEY") -> RuntimeEnv:
    return RuntimeEnv(
        api_key=os.environ.get(api_key_env_var, ""),
        api_key_env_var=api_key_env_var,
    )


def build_endpoint_config(app: AppConfig, env: RuntimeEnv) -> EndpointConfig:
    return EndpointConfig(
        bearer_token=env.api_key,
        content_type=app.content_type,
        endpoint_url=app.endpoint_url,
        http_method=app.http_method,
    )
