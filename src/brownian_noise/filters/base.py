"""Shared filter interface and cascade composition."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Mapping

import numpy as np


class BaseFilter(ABC):
    """Common interface for per-sample streaming filters."""

    name: str = "filter"

    @abstractmethod
    def process_sample(self, sample: float) -> float:
        """Consume one sample and return the filtered value."""

    def describe(self) -> Mapping[str, object]:
        return {"name": self.name}


@dataclass
class FilterCascade:
    """Ordered chain of filters; each stage's output feeds the next stage."""

    filters: list[BaseFilter] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.filters:
            raise ValueError("FilterCascade requires at least one filter stage")

    def __len__(self) -> int:
        return len(self.filters)

    def process_sample(self, sample: float) -> float:
        value = sample
        for filt in self.filters:
            value = filt.process_sample(value)
        return value

    def process(self, samples: Iterable[float]) -> np.ndarray:
        return np.asarray([self.process_sample(float(x)) for x in samples], dtype=float)

    def impulse_response(self, amplitude: float = 100.0, length: int = 64) -> np.ndarray:
        """Response of a copy of this cascade to one impulse followed by zeros.

        The live cascade's state is left untouched.
        """

        if length <= 0:
            return np.zeros(0, dtype=float)
        probe = copy.deepcopy(self)
        impulse = np.zeros(length, dtype=float)
        impulse[0] = amplitude
        return probe.process(impulse)

    def describe(self) -> dict[str, object]:
        return {"poles": len(self.filters), "stages": [dict(f.describe()) for f in self.filters]}

    @classmethod
    def lowpass(cls, response: float, poles: int, state: float = 0.0) -> "FilterCascade":
        """Build ``poles`` independent low-pass stages sharing one response."""

        from .lowpass import LowPassFilter

        if int(poles) < 1:
            raise ValueError(f"Pole count must be >= 1 (got {poles})")
        return cls(filters=[LowPassFilter(response, state=state) for _ in range(int(poles))])

    @classmethod
    def from_config(cls, config: Iterable[Mapping[str, object]] | None) -> "FilterCascade":
        from .lowpass import LowPassFilter

        mapping = {
            "lowpass": LowPassFilter,
        }

        filters: list[BaseFilter] = []
        for cfg in config or []:
            ftype = str(cfg.get("type") or cfg.get("name") or "").lower()  # type: ignore[union-attr]
            if not ftype:
                raise ValueError("Filter config entries require a 'type' or 'name' field")
            factory = mapping.get(ftype)
            if not factory:
                raise ValueError(f"Unknown filter type '{ftype}'. Available: {sorted(mapping)}")
            params = {k: v for k, v in cfg.items() if k not in {"type", "name"}}  # type: ignore[union-attr]
            filters.append(factory(**params))
        return cls(filters=filters)
