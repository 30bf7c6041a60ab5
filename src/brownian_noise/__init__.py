"""Streaming cascaded low-pass filter for brown noise generation."""

from importlib import metadata

from .config import StreamSettings, load_settings
from .filters import BaseFilter, FilterCascade, LowPassFilter
from .streaming import StreamingService, StreamReadError

try:
    __version__ = metadata.version("brownian-noise")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for source checkouts
    __version__ = "1.0.0"

__all__ = [
    "BaseFilter",
    "FilterCascade",
    "LowPassFilter",
    "StreamSettings",
    "load_settings",
    "StreamingService",
    "StreamReadError",
    "__version__",
]
