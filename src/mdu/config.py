"""Runtime settings for mdu.

Settings are a frozen value object.  Defaults are suitable for normal
use; every field can be overridden from the environment via
:meth:`Settings.from_env`.

Environment variables
---------------------
``MDU_TIMEOUT``
    Per-request network timeout in seconds (float, > 0).
``MDU_USER_AGENT``
    Browser User-Agent sent to video pages.
``MDU_TIKTOK_API_USER_AGENT``
    User-Agent sent to the TikTok mobile feed API.
``MDU_YTDLP_FALLBACK``
    ``1``/``true``/``yes``/``on`` enables the yt-dlp last-resort strategy.
``MDU_LOG_LEVEL``
    Logging level name used by the CLI (``WARNING`` by default).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from mdu.exceptions import ConfigurationError

DEFAULT_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_TIKTOK_API_USER_AGENT: str = (
    "TikTok 26.2.0 rv:262018 (iPhone; iOS 14.4.2; en_US) Cronet"
)

_TRUE_VALUES: frozenset[str] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: frozenset[str] = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable runtime configuration."""

    timeout: float = 15.0
    """Seconds before a single fetch is abandoned."""

    user_agent: str = DEFAULT_USER_AGENT
    """User-Agent presented to video pages."""

    tiktok_api_user_agent: str = DEFAULT_TIKTOK_API_USER_AGENT
    """User-Agent presented to the TikTok feed API."""

    ytdlp_fallback: bool = False
    """Append the yt-dlp strategy to the end of the YouTube chain."""

    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``MDU_*`` environment variables.

        Raises
        ------
        ConfigurationError
            If a variable is present but cannot be interpreted.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            timeout=_parse_timeout(env.get("MDU_TIMEOUT"), defaults.timeout),
            user_agent=env.get("MDU_USER_AGENT") or defaults.user_agent,
            tiktok_api_user_agent=(
                env.get("MDU_TIKTOK_API_USER_AGENT")
                or defaults.tiktok_api_user_agent
            ),
            ytdlp_fallback=_parse_bool(
                "MDU_YTDLP_FALLBACK",
                env.get("MDU_YTDLP_FALLBACK"),
                defaults.ytdlp_fallback,
            ),
            log_level=_parse_log_level(
                env.get("MDU_LOG_LEVEL"), defaults.log_level,
            ),
        )


def _parse_timeout(raw: str | None, default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"MDU_TIMEOUT must be a number, got {raw!r}",
        ) from exc
    if value <= 0:
        raise ConfigurationError(
            f"MDU_TIMEOUT must be positive, got {raw!r}",
        )
    return value


def _parse_bool(name: str, raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean flag, got {raw!r}",
        hint="Use one of: 1, 0, true, false, yes, no, on, off.",
    )


def _parse_log_level(raw: str | None, default: str) -> str:
    if raw is None or not raw.strip():
        return default
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Unknown MDU_LOG_LEVEL: {raw!r}")
    return level
