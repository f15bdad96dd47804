"""Component-scoped loggers for holo-fusion.

Every logger lives under the ``holo_fusion`` namespace and tags its records
with a short component name (``SensorRegistry``, ``Pipeline.2``...), so lines
from different sensors and threads can be told apart in one log file.
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional, Tuple, Union

NAMESPACE = "holo_fusion"


def _qualify(name: Optional[str]) -> str:
    if not name or name == NAMESPACE:
        return NAMESPACE
    if name.startswith(f"{NAMESPACE}."):
        return name
    return f"{NAMESPACE}.{name}"


def _component_of(qualified: str) -> str:
    suffix = qualified[len(NAMESPACE):].lstrip(".")
    if suffix.startswith(("core.", "fusion.", "backends.", "app.")):
        suffix = suffix.rsplit(".", 1)[-1]
    return suffix or "Core"


class ComponentLogger(logging.LoggerAdapter):
    """Adapter that prefixes each message with ``[component]``."""

    def __init__(self, logger: logging.Logger, component: Optional[str] = None) -> None:
        super().__init__(logger, {"component": component or _component_of(logger.name)})

    @property
    def component(self) -> str:
        return self.extra["component"]

    @property
    def name(self) -> str:
        return self.logger.name

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        prefix = f"[{self.component}] "
        text = str(msg)
        if not text.startswith(prefix):
            text = prefix + text
        return text, kwargs

    def getChild(self, suffix: str) -> "ComponentLogger":
        return ComponentLogger(self.logger.getChild(suffix), f"{self.component}.{suffix}")


LoggerLike = Union[ComponentLogger, logging.Logger, logging.LoggerAdapter, None]


def ensure_component_logger(logger: LoggerLike, *, fallback_name: Optional[str] = None) -> ComponentLogger:
    """Wrap ``logger`` if needed; ``None`` yields a module logger for ``fallback_name``."""
    if isinstance(logger, ComponentLogger):
        return logger
    if isinstance(logger, logging.LoggerAdapter):
        return ComponentLogger(logger.logger)
    if isinstance(logger, logging.Logger):
        return ComponentLogger(logger)
    return get_module_logger(fallback_name)


def get_module_logger(name: Optional[str] = None) -> ComponentLogger:
    return ComponentLogger(logging.getLogger(_qualify(name)))


__all__ = [
    "NAMESPACE",
    "ComponentLogger",
    "LoggerLike",
    "ensure_component_logger",
    "get_module_logger",
]
