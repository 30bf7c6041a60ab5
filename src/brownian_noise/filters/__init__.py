"""Per-sample streaming filters."""

from .base import BaseFilter, FilterCascade
from .lowpass import LowPassFilter

__all__ = [
    "BaseFilter",
    "FilterCascade",
    "LowPassFilter",
]
