"""Single-pole low-pass filter ("forgetful integrator")."""

from __future__ import annotations

import math

from .base import BaseFilter


class LowPassFilter(BaseFilter):
    """First-order IIR low-pass with loudness normalisation and saturation.

    ``y[n] = gain * x[n] + response * y[n-1]`` clamped to ``[-limit, limit]``,
    where ``gain = -ln(response)``. Higher ``response`` means a longer memory
    and a lower cutoff; the gain keeps the perceived level roughly constant
    across cutoffs.
    """

    def __init__(
        self,
        response: float,
        state: float = 0.0,
        limit: float = 128.0,
        name: str = "lowpass",
    ) -> None:
        response = float(response)
        if not 0.0 < response < 1.0:
            raise ValueError(f"response must lie strictly between 0 and 1 (got {response})")
        if limit <= 0:
            raise ValueError(f"limit must be positive (got {limit})")
        self._response = response
        self._gain = -math.log(response)
        self.limit = float(limit)
        self.state = float(state)
        self.name = name

    @property
    def response(self) -> float:
        return self._response

    @property
    def gain(self) -> float:
        return self._gain

    def process_sample(self, sample: float) -> float:
        state = self._gain * sample + self._response * self.state
        # saturate at full scale
        if state > self.limit:
            state = self.limit
        elif state < -self.limit:
            state = -self.limit
        self.state = state
        return state

    def describe(self) -> dict[str, object]:
        return {"name": self.name, "response": self._response, "gain": self._gain, "limit": self.limit}
