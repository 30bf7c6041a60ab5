"""Runtime settings for the streaming driver and terminal renderer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, field_validator


class StreamSettings(BaseModel):
    """Constants shared by the driver and sinks, overridable per run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    width: int = 220
    clip_level: float = 128.0
    sleep_ms: float = 10.0
    output_gain: float = 9.0
    input_divisor: float = 4.0
    log_every: int = 0

    @field_validator("width", "clip_level", "output_gain", "input_divisor")
    @classmethod
    def _ensure_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("sleep_ms", "log_every")
    @classmethod
    def _ensure_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    def merged(self, overrides: Mapping[str, Any]) -> "StreamSettings":
        """Return a copy with non-``None`` overrides applied and re-validated."""

        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return StreamSettings(**data)


def _read_mapping(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        loaded = json.loads(text)
    else:
        loaded = yaml.safe_load(text)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")
    # allow settings nested under a top-level "stream" key
    if isinstance(loaded.get("stream"), dict):
        return loaded["stream"]
    return loaded


def load_settings(path: str | Path | None = None) -> StreamSettings:
    """Load stream settings from YAML or JSON, falling back to defaults."""

    if path is None:
        return StreamSettings()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")
    return StreamSettings(**_read_mapping(path))
