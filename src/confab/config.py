"""Configuration loader: YAML file with environment variable fallbacks."""

from __future__ import annotations

import getpass
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_DEFAULT_MODEL = "gpt-4o-mini"
_DEFAULT_STYLE = "monokai"
_DEFAULT_TERMINATOR = "$"
_DEFAULT_SYSTEM_PREFIX = "!"


@dataclass
class AIConfig:
    base_url: str
    api_key: str
    model: str = _DEFAULT_MODEL
    system_prompt: str = ""
    verify_ssl: bool = True
    request_timeout: int = 120  # seconds; read timeout for a single completion
    connect_timeout: int = 5


@dataclass
class ChatConfig:
    user: str = ""
    format_output: bool = True
    style: str = _DEFAULT_STYLE
    multiline: bool = False
    terminator: str = _DEFAULT_TERMINATOR
    system_prefix: str = _DEFAULT_SYSTEM_PREFIX
    history: bool = True


@dataclass
class AppSettings:
    data_dir: Path = field(default_factory=lambda: Path.home() / ".confab")
    log_file: Path | None = None
    log_level: str = "WARNING"

    @property
    def history_path(self) -> Path:
        return self.data_dir / "cli_history"

    @property
    def resolved_log_file(self) -> Path:
        return self.log_file or self.data_dir / "confab.log"


@dataclass
class AppConfig:
    ai: AIConfig
    chat: ChatConfig = field(default_factory=ChatConfig)
    app: AppSettings = field(default_factory=AppSettings)


def _resolve_data_dir() -> Path:
    env_dir = os.environ.get("CONFAB_DATA_DIR")
    if env_dir:
        return Path(os.path.expanduser(env_dir))
    return Path.home() / ".confab"


def _get_config_path(data_dir: Path | None = None) -> Path:
    return (data_dir or _resolve_data_dir()) / "config.yaml"


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("false", "0", "no", "off")


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "user"


def load_config(config_path: Path | None = None) -> AppConfig:
    raw: dict[str, Any] = {}
    path = config_path or _get_config_path()

    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{path} must contain a YAML mapping at the top level.")

    ai_raw = raw.get("ai", {}) or {}
    base_url = ai_raw.get("base_url") or os.environ.get("AI_CHAT_BASE_URL", "")
    api_key = ai_raw.get("api_key") or os.environ.get("AI_CHAT_API_KEY", "")
    model = ai_raw.get("model") or os.environ.get("AI_CHAT_MODEL", _DEFAULT_MODEL)
    system_prompt = ai_raw.get("system_prompt") or os.environ.get("AI_CHAT_SYSTEM_PROMPT", "")

    if not base_url:
        raise ValueError(
            "AI base_url is required. Set 'ai.base_url' in config.yaml "
            f"({path}) or AI_CHAT_BASE_URL environment variable."
        )
    if not api_key:
        raise ValueError(
            f"AI api_key is required. Set 'ai.api_key' in config.yaml ({path}) or AI_CHAT_API_KEY environment variable."
        )

    verify_ssl = _as_bool(ai_raw.get("verify_ssl", os.environ.get("AI_CHAT_VERIFY_SSL")), True)

    ai = AIConfig(
        base_url=base_url,
        api_key=api_key,
        model=model,
        system_prompt=system_prompt,
        verify_ssl=verify_ssl,
        request_timeout=int(ai_raw.get("request_timeout", os.environ.get("AI_CHAT_REQUEST_TIMEOUT", 120))),
        connect_timeout=int(ai_raw.get("connect_timeout", 5)),
    )

    chat_raw = raw.get("chat", {}) or {}
    chat = ChatConfig(
        user=str(chat_raw.get("user") or os.environ.get("CONFAB_USER") or _default_user()),
        format_output=_as_bool(chat_raw.get("format"), True),
        style=str(chat_raw.get("style", _DEFAULT_STYLE)),
        multiline=_as_bool(chat_raw.get("multiline"), False),
        terminator=str(chat_raw.get("terminator", _DEFAULT_TERMINATOR)),
        system_prefix=str(chat_raw.get("system_prefix", _DEFAULT_SYSTEM_PREFIX)),
        history=_as_bool(chat_raw.get("history"), True),
    )
    if chat.multiline and not chat.terminator:
        raise ValueError("chat.terminator must be non-empty when chat.multiline is enabled.")
    if not chat.system_prefix:
        raise ValueError("chat.system_prefix must be non-empty.")

    app_raw = raw.get("app", {}) or {}
    data_dir = Path(os.path.expanduser(app_raw["data_dir"])) if app_raw.get("data_dir") else _resolve_data_dir()
    log_file = app_raw.get("log_file")
    app_settings = AppSettings(
        data_dir=data_dir,
        log_file=Path(os.path.expanduser(log_file)) if log_file else None,
        log_level=str(app_raw.get("log_level", "WARNING")).upper(),
    )

    app_settings.data_dir.mkdir(parents=True, exist_ok=True)
    try:
        app_settings.data_dir.chmod(stat.S_IRWXU)  # 0700
        if path.exists():
            path.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0600
    except OSError:
        pass  # May fail on Windows or non-owned files

    return AppConfig(ai=ai, chat=chat, app=app_settings)
