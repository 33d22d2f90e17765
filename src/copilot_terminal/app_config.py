from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from copilot_terminal.auth.device_flow import DEFAULT_CLIENT_ID, DEFAULT_SCOPES
from copilot_terminal.suggestion_service import DEFAULT_MODEL

DEFAULT_CONFIG_DIR = Path.home() / ".copilot-terminal"


@dataclass
class RuntimeEnv:
    config_dir: Path
    debug: bool
    model_override: str | None


@dataclass
class AppConfig:
    config_dir: Path
    model: str
    context_limit: int
    output_preview_chars: int
    http_timeout_seconds: float
    enforce_device_code_expiry: bool
    client_id: str
    scopes: str
    github_base_url: str
    github_api_base_url: str
    copilot_api_base_url: str
    log_level: str
    log_consumers: list | None
    debug: bool

    @property
    def token_file(self) -> Path:
        return self.config_dir / "token.json"

    @property
    def sessions_dir(self) -> Path:
        return self.config_dir / "sessions"

    @property
    def log_file(self) -> Path:
        return self.config_dir / "copilot-terminal.log"


def load_json_config(config_dir: Path) -> dict:
    config_path = config_dir / "config.json"
    if not config_path.exists():
        return {}
    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as ex:
        logger.warning(f"Ignoring unreadable config file {config_path}: {ex}")
        return {}
    return data if isinstance(data, dict) else {}


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


def parse_app_config(config: dict, env: RuntimeEnv) -> AppConfig:
    debug = env.debug or _to_bool(config.get("Debug", False))
    return AppConfig(
        config_dir=env.config_dir,
        model=env.model_override or config.get("Model", DEFAULT_MODEL),
        context_limit=int(config.get("ContextLimit", 5)),
        output_preview_chars=int(config.get("OutputPreviewChars", 500)),
        http_timeout_seconds=float(config.get("HttpTimeoutSeconds", 30.0)),
        enforce_device_code_expiry=_to_bool(config.get("EnforceDeviceCodeExpiry", True), default=True),
        client_id=config.get("ClientId", DEFAULT_CLIENT_ID),
        scopes=config.get("Scopes", DEFAULT_SCOPES),
        github_base_url=config.get("GithubBaseUrl", "https://github.com"),
        github_api_base_url=config.get("GithubApiBaseUrl", "https://api.github.com"),
        copilot_api_base_url=config.get("CopilotApiBaseUrl", "https://api.githubcopilot.com"),
        log_level="DEBUG" if debug else config.get("LogLevel", "WARNING"),
        log_consumers=config.get("LogConsumers"),
        debug=debug,
    )


def resolve_runtime_env() -> RuntimeEnv:
    home = os.environ.get("COPILOT_TERMINAL_HOME", "").strip()
    return RuntimeEnv(
        config_dir=Path(home).expanduser() if home else DEFAULT_CONFIG_DIR,
        debug=_to_bool(os.environ.get("DEBUG"), default=False),
        model_override=os.environ.get("COPILOT_TERMINAL_MODEL", "").strip() or None,
    )
