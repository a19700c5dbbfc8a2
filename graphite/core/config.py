"""
Настройки приложения.

Значения по умолчанию — в ``AppConfig``; необязательный JSON-файл
переопределяет любые известные ключи, например
``{"camera_index": 1, "log_level": "DEBUG"}``.
"""

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    # Камера
    camera_index: int = 0
    resolution: Tuple[int, int] = (640, 480)
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    # Холст и цикл
    canvas_size: Tuple[int, int] = (1280, 960)
    frame_interval_ms: int = 16
    camera_opacity: float = 0.25

    # Микрофон
    audio_poll_interval_ms: int = 50
    sample_rate: int = 44100
    block_size: int = 1024
    max_recordings: int = 10

    # Вероятности звуковых действий
    recording_probability: float = 0.15
    playback_probability: float = 0.2
    effect_probability: float = 0.25
    side_record_probability: float = 0.05

    # Случайность (None — непредсказуемо)
    seed: Optional[int] = None

    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> AppConfig:
    config = AppConfig()
    if path is None:
        return config

    try:
        with open(Path(path), "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("Config file not found: %s, using defaults", path)
        return config
    except json.JSONDecodeError as e:
        logger.warning("Error parsing config file %s: %s, using defaults", path, e)
        return config

    if not isinstance(data, dict):
        logger.warning("Config file %s must contain a JSON object, using defaults", path)
        return config

    known = {f.name for f in fields(AppConfig)}
    overrides = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Unknown config key ignored: %s", key)
            continue
        # JSON не знает кортежей
        overrides[key] = tuple(value) if isinstance(value, list) else value

    logger.info("Loaded configuration from %s", path)
    return replace(config, **overrides)


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO"):
    """
    Настраивает корневой логгер. Можно вызывать повторно:
    обработчик ставится один раз, уровень обновляется каждый раз.
    """
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(getattr(logging, str(level).upper(), logging.INFO))
