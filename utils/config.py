"""Runtime configuration.

All settings come from the process environment (a ``.env`` file next to the
bot is loaded first, if present). The result is an immutable :class:`BotConfig`
that ``bot.py`` builds once and hands to everything that needs it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from utils.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_COMMAND_PREFIX = "~"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = "logs/bot.log"
DEFAULT_HTTP_TIMEOUT = 20.0


@dataclass(frozen=True)
class BotConfig:
    discord_token: str
    osu_api_key: str
    command_prefix: str = DEFAULT_COMMAND_PREFIX
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str = DEFAULT_LOG_FILE
    http_timeout: float = DEFAULT_HTTP_TIMEOUT


def _require(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise ConfigError(f"{name} is not set")
    return value


def load_config(env: Mapping[str, str] | None = None) -> BotConfig:
    """Build a :class:`BotConfig` from ``env`` (defaults to ``os.environ``).

    Raises:
        ConfigError: if ``DISCORD_TOKEN`` or ``OSU_API_KEY`` is missing, or
            ``HTTP_TIMEOUT`` is not a positive number.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    raw_timeout = env.get("HTTP_TIMEOUT") or str(DEFAULT_HTTP_TIMEOUT)
    try:
        http_timeout = float(raw_timeout)
    except ValueError:
        raise ConfigError(f"HTTP_TIMEOUT must be a number, got {raw_timeout!r}") from None
    if http_timeout <= 0:
        raise ConfigError(f"HTTP_TIMEOUT must be positive, got {raw_timeout!r}")

    return BotConfig(
        discord_token=_require(env, "DISCORD_TOKEN"),
        osu_api_key=_require(env, "OSU_API_KEY"),
        command_prefix=env.get("COMMAND_PREFIX") or DEFAULT_COMMAND_PREFIX,
        log_level=(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        log_file=env.get("LOG_FILE") or DEFAULT_LOG_FILE,
        http_timeout=http_timeout,
    )
