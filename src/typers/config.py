"""Configuration for inference runs.

Settings can be loaded from a JSON file, e.g. ``typers.json``::

    {
        "max_steps": 500,
        "log_level": "DEBUG"
    }

Unknown keys are rejected so that typos do not go unnoticed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from typers.checker.solver import DEFAULT_MAX_STEPS

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class InferenceConfig:
    """Settings for one analysis.

    Attributes:
        max_steps: Upper bound on recorded simplification steps
        log_level: Level for the ``typers`` loggers when configured by the CLI

    """

    max_steps: int = DEFAULT_MAX_STEPS
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            msg = f"max_steps must be positive, got {self.max_steps}"
            raise ValueError(msg)
        if self.log_level.upper() not in _LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}"
            raise ValueError(msg)

    @property
    def level(self) -> int:
        """The ``logging`` level number for ``log_level``."""
        return logging.getLevelName(self.log_level.upper())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InferenceConfig:
        """Build a config from a mapping, rejecting unknown keys.

        Raises:
            ValueError: On unknown keys or invalid values

        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown configuration keys: {', '.join(unknown)}"
            raise ValueError(msg)
        return cls(**data)


def load_config(path: str | Path | None = None) -> InferenceConfig:
    """Load configuration from a JSON file, or defaults when ``path`` is None.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If the file is not a JSON object of known settings

    """
    if path is None:
        return InferenceConfig()

    config_path = Path(path)
    if not config_path.exists():
        msg = f"configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"failed to parse configuration: {exc}"
        raise ValueError(msg) from exc

    if not isinstance(data, dict):
        msg = "configuration root must be a JSON object"
        raise ValueError(msg)
    return InferenceConfig.from_dict(data)
