from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .utils import load_json


@dataclass(frozen=True)
class EngineConfig:
    ocr: dict[str, Any] = field(default_factory=dict)
    color: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    fallback: dict[str, Any] = field(default_factory=dict)


def default_config() -> EngineConfig:
    # Every stage falls back to its built-in defaults for missing keys.
    return EngineConfig()


def load_config(config_path: str | Path) -> EngineConfig:
    data = load_json(config_path)
    if not isinstance(data, dict):
        raise ValueError(f"config must be a JSON object: {config_path}")
    return EngineConfig(
        ocr=data.get("ocr", {}),
        color=data.get("color", {}),
        context=data.get("context", {}),
        fallback=data.get("fallback", {}),
    )
