"""Typed settings for holo-fusion, built from ``config.txt`` plus CLI overrides."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from holo_fusion.core.config_manager import get_config_manager
from holo_fusion.core.logging_utils import LoggerLike, ensure_component_logger
from holo_fusion.core.paths import MASTER_LOG_FILE

DEFAULT_FRAME_WIDTH = 640
DEFAULT_FRAME_HEIGHT = 480
DEFAULT_BACKEND = "synthetic"
DEFAULT_SYNTHETIC_SENSORS = 1
DEFAULT_SYNTHETIC_FPS = 30.0
DEFAULT_SKELETON_DROP_EVERY = 0
DEFAULT_DURATION = 0.0
DEFAULT_CONSUMER_READY_ON_START = True
DEFAULT_STATS_INTERVAL = 5.0
DEFAULT_FATAL_EXIT_DELAY = 2.0
DEFAULT_STOP_TIMEOUT = 5.0
DEFAULT_LOG_LEVEL = "info"
DEFAULT_CONSOLE_OUTPUT = True


@dataclass(slots=True)
class CaptureSettings:
    width: int
    height: int


@dataclass(slots=True)
class BackendSettings:
    name: str
    sensors: int
    fps: float
    skeleton_drop_every: int


@dataclass(slots=True)
class RuntimeSettings:
    duration: float
    consumer_ready_on_start: bool
    stats_interval: float
    fatal_exit_delay: float
    stop_timeout: float


@dataclass(slots=True)
class LoggingSettings:
    level: str
    file: Optional[Path]
    console: bool


@dataclass(slots=True)
class FusionSettings:
    capture: CaptureSettings
    backend: BackendSettings
    runtime: RuntimeSettings
    logging: LoggingSettings


def load_settings(
    config: Optional[Dict[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
    *,
    logger: LoggerLike = None,
) -> FusionSettings:
    """Build typed settings from raw config values and optional overrides.

    ``overrides`` values of ``None`` are ignored so argparse namespaces can be
    passed straight through.
    """

    log = ensure_component_logger(logger, fallback_name=__name__)
    cm = get_config_manager()
    merged: Dict[str, str] = dict(config or {})
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = str(value).lower() if isinstance(value, bool) else str(value)

    log_file_value = cm.get_str(merged, "log_file", str(MASTER_LOG_FILE)).strip()
    settings = FusionSettings(
        capture=CaptureSettings(
            width=cm.get_int(merged, "frame_width", DEFAULT_FRAME_WIDTH),
            height=cm.get_int(merged, "frame_height", DEFAULT_FRAME_HEIGHT),
        ),
        backend=BackendSettings(
            name=cm.get_str(merged, "backend", DEFAULT_BACKEND),
            sensors=max(0, cm.get_int(merged, "synthetic_sensors", DEFAULT_SYNTHETIC_SENSORS)),
            fps=cm.get_float(merged, "synthetic_fps", DEFAULT_SYNTHETIC_FPS),
            skeleton_drop_every=max(0, cm.get_int(merged, "skeleton_drop_every", DEFAULT_SKELETON_DROP_EVERY)),
        ),
        runtime=RuntimeSettings(
            duration=max(0.0, cm.get_float(merged, "duration", DEFAULT_DURATION)),
            consumer_ready_on_start=cm.get_bool(
                merged, "consumer_ready_on_start", DEFAULT_CONSUMER_READY_ON_START
            ),
            stats_interval=cm.get_float(merged, "stats_interval", DEFAULT_STATS_INTERVAL),
            fatal_exit_delay=max(0.0, cm.get_float(merged, "fatal_exit_delay", DEFAULT_FATAL_EXIT_DELAY)),
            stop_timeout=cm.get_float(merged, "stop_timeout", DEFAULT_STOP_TIMEOUT),
        ),
        logging=LoggingSettings(
            level=cm.get_str(merged, "log_level", DEFAULT_LOG_LEVEL),
            file=Path(log_file_value) if log_file_value and log_file_value.lower() != "none" else None,
            console=cm.get_bool(merged, "console_output", DEFAULT_CONSOLE_OUTPUT),
        ),
    )
    log.debug(
        "Loaded settings: %dx%d backend=%s sensors=%d",
        settings.capture.width,
        settings.capture.height,
        settings.backend.name,
        settings.backend.sensors,
    )
    return settings


__all__ = [
    "CaptureSettings",
    "BackendSettings",
    "RuntimeSettings",
    "LoggingSettings",
    "FusionSettings",
    "load_settings",
]
