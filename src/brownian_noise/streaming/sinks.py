"""Output sinks: raw signed bytes or a terminal magnitude trace."""

from __future__ import annotations

import time
from typing import BinaryIO, Callable, TextIO

from ..config import StreamSettings


class SampleSink:
    """Receives one filtered value per sample."""

    def write(self, value: float) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def flush(self) -> None:
        pass


def quantize(value: float, output_gain: float) -> int:
    """Scale a filtered value to a signed byte, rounding then clipping."""
    scaled = round(value * output_gain)
    return max(-128, min(127, int(scaled)))


class RawByteSink(SampleSink):
    """Writes each sample as one two's-complement byte, for audio playback."""

    def __init__(self, stream: BinaryIO, settings: StreamSettings, buffer_size: int = 64) -> None:
        self.stream = stream
        self.output_gain = settings.output_gain
        self.buffer_size = max(int(buffer_size), 1)
        self._pending = bytearray()

    def write(self, value: float) -> None:
        self._pending.append(quantize(value, self.output_gain) & 0xFF)
        if len(self._pending) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        if self._pending:
            self.stream.write(bytes(self._pending))
            self._pending.clear()
        self.stream.flush()


def render_line(value: float, width: int, clip_level: float, marker: str = "#") -> str:
    """Map ``[-clip_level, clip_level]`` onto ``[0, width]`` as padded text."""

    position = value * (width / (2.0 * clip_level)) + width / 2.0
    return " " * max(int(position), 0) + marker + "\n"


class TerminalRenderer(SampleSink):
    """Prints a vertical trace; the marker's column shows the magnitude."""

    def __init__(
        self,
        stream: TextIO,
        settings: StreamSettings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.stream = stream
        self.width = settings.width
        self.clip_level = settings.clip_level
        self.sleep_s = settings.sleep_ms / 1000.0
        self._sleep = sleep

    def write(self, value: float) -> None:
        self.stream.write(render_line(value, self.width, self.clip_level))
        self.stream.flush()
        # slow the trace down to a readable speed
        if self.sleep_s > 0:
            self._sleep(self.sleep_s)

    def flush(self) -> None:
        self.stream.flush()


def build_sink(
    visualize: bool,
    settings: StreamSettings,
    *,
    binary_stream: BinaryIO | None = None,
    text_stream: TextIO | None = None,
) -> SampleSink:
    if visualize:
        if text_stream is None:
            raise ValueError("Terminal rendering requires a text stream")
        return TerminalRenderer(text_stream, settings)
    if binary_stream is None:
        raise ValueError("Raw output requires a binary stream")
    return RawByteSink(binary_stream, settings)
