"""Sample sources yielding signed 8-bit amplitudes."""

from __future__ import annotations

import logging
from typing import BinaryIO, Callable, Iterable, Iterator, Mapping

import numpy as np

logger = logging.getLogger(__name__)


class StreamReadError(OSError):
    """Raised when the input stream fails for a reason other than end-of-stream."""


def to_signed(byte: int) -> int:
    """Interpret an unsigned byte value (0..255) as two's-complement."""
    return byte - 256 if byte > 127 else byte


class StreamingSource:
    """Iterable source contract."""

    def __iter__(self) -> Iterator[int]:  # pragma: no cover - interface only
        raise NotImplementedError


class ByteStreamSource(StreamingSource):
    """Reads one signed byte per sample from a binary stream until EOF."""

    def __init__(self, stream: BinaryIO, chunk_size: int = 4096) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.stream = stream
        self.chunk_size = chunk_size

    def _read(self) -> bytes:
        # read1 returns whatever is already buffered instead of waiting for a full chunk
        reader = getattr(self.stream, "read1", self.stream.read)
        try:
            return reader(self.chunk_size)
        except OSError as exc:
            logger.exception("Failed to read from input stream")
            raise StreamReadError(f"Input stream read failed: {exc}") from exc

    def __iter__(self) -> Iterator[int]:
        while True:
            chunk = self._read()
            if not chunk:
                logger.debug("Input stream exhausted")
                return
            for byte in chunk:
                yield to_signed(byte)


class SimulatedSource(StreamingSource):
    """Uniform white noise over the signed byte range, like /dev/urandom."""

    def __init__(self, seed: int | None = None, batch_size: int = 1024, limit: int | None = None) -> None:
        self.batch_size = batch_size
        self.limit = limit
        self._rng = np.random.default_rng(seed)

    def __iter__(self) -> Iterator[int]:
        produced = 0
        while self.limit is None or produced < self.limit:
            batch = self._rng.integers(-128, 128, size=self.batch_size, dtype=np.int16)
            for value in batch.tolist():
                if self.limit is not None and produced >= self.limit:
                    return
                produced += 1
                yield value


def build_source(cfg: Mapping[str, object] | None, stream: BinaryIO | None = None) -> Callable[[], Iterable[int]]:
    """Factory for sample sources based on a config mapping."""

    if cfg is None:
        cfg = {"type": "stdin"}

    source_type = str(cfg.get("type", "stdin")).lower()
    if source_type in {"stdin", "stream"}:
        if stream is None:
            raise ValueError("Stream source requires a binary stream")
        chunk_size = int(cfg.get("chunk_size", 4096))  # type: ignore[arg-type]
        return lambda: ByteStreamSource(stream, chunk_size=chunk_size)
    if source_type in {"simulated", "noise"}:
        seed = cfg.get("seed")
        limit = cfg.get("limit")
        return lambda: SimulatedSource(
            seed=int(seed) if seed is not None else None,  # type: ignore[arg-type]
            limit=int(limit) if limit is not None else None,  # type: ignore[arg-type]
        )

    raise ValueError(f"Unknown source type '{source_type}'")
