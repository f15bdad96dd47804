"""Reader for ``config.txt``: one ``key = value`` per line, ``#`` starts a comment."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable, TypeVar

import aiofiles

from holo_fusion.core.logging_utils import get_module_logger

logger = get_module_logger("ConfigManager")

T = TypeVar("T")

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_config_lines(lines: Iterable[str]) -> Dict[str, str]:
    """Parse config lines into raw string values; malformed lines are skipped."""
    config: Dict[str, str] = {}
    for number, raw in enumerate(lines, 1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            logger.debug("Ignoring config line %d: %r", number, raw.rstrip())
            continue
        config[key] = _unquote(value.strip())
    return config


class ConfigManager:
    """Loads raw values and converts them to typed settings with fallbacks."""

    def read_config(self, config_path: Path) -> Dict[str, str]:
        """Read ``config_path``; a missing or unreadable file yields ``{}``."""
        try:
            with open(config_path, "r", encoding="utf-8") as handle:
                return parse_config_lines(handle)
        except FileNotFoundError:
            logger.debug("No config file at %s, using defaults", config_path)
        except OSError as exc:
            logger.error("Cannot read config %s: %s", config_path, exc)
        return {}

    async def read_config_async(self, config_path: Path) -> Dict[str, str]:
        try:
            async with aiofiles.open(config_path, "r", encoding="utf-8") as handle:
                lines = await handle.readlines()
        except FileNotFoundError:
            logger.debug("No config file at %s, using defaults", config_path)
            return {}
        except OSError as exc:
            logger.error("Cannot read config %s: %s", config_path, exc)
            return {}
        return parse_config_lines(lines)

    # ------------------------------------------------------------------
    # Typed access

    def _convert(self, config: Dict[str, str], key: str, default: T, convert: Callable[[str], T]) -> T:
        if key not in config:
            return default
        try:
            return convert(config[key])
        except ValueError:
            logger.warning("Invalid value for %s: %r; using %r", key, config[key], default)
            return default

    def get_bool(self, config: Dict[str, str], key: str, default: bool = False) -> bool:
        def to_bool(text: str) -> bool:
            word = text.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
            raise ValueError(text)

        return self._convert(config, key, default, to_bool)

    def get_int(self, config: Dict[str, str], key: str, default: int = 0) -> int:
        return self._convert(config, key, default, int)

    def get_float(self, config: Dict[str, str], key: str, default: float = 0.0) -> float:
        return self._convert(config, key, default, float)

    def get_str(self, config: Dict[str, str], key: str, default: str = "") -> str:
        return config.get(key, default)


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    return _config_manager


__all__ = ["ConfigManager", "get_config_manager", "parse_config_lines"]
