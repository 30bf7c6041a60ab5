"""Read-filter-emit loop driving a filter cascade over a sample stream."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from ..config import StreamSettings
from ..filters import FilterCascade
from ..logging_utils import log_event
from .sinks import SampleSink

logger = logging.getLogger(__name__)


class StreamingService:
    """Runs the streaming pipeline end-to-end, one sample at a time."""

    def __init__(
        self,
        source: Callable[[], Iterable[int]],
        cascade: FilterCascade,
        sink: SampleSink,
        settings: StreamSettings | None = None,
    ) -> None:
        self.source = source
        self.cascade = cascade
        self.sink = sink
        self.settings = settings or StreamSettings()
        self.processed = 0
        self._running = False

    def process_sample(self, raw: int) -> float:
        """Scale one raw byte, filter it and hand it to the sink."""

        filtered = self.cascade.process_sample(raw / self.settings.input_divisor)
        self.sink.write(filtered)
        self.processed += 1
        return filtered

    def run(self, *, max_samples: int | None = None) -> int:
        """Stream until the source is exhausted, ``max_samples`` or ``stop()``.

        Returns the number of samples processed during this call.
        """

        self._running = True
        start = self.processed
        reason = "end_of_stream"
        log_event(logger, "stream_started", poles=len(self.cascade), max_samples=max_samples)
        try:
            if max_samples is not None and max_samples <= 0:
                reason = "max_samples"
            else:
                for raw in self.source():
                    if not self._running:
                        reason = "stopped"
                        break
                    value = self.process_sample(raw)
                    count = self.processed - start
                    if self.settings.log_every and count % self.settings.log_every == 0:
                        logger.debug("Processed %d samples (last=%.3f)", count, value)
                    if max_samples is not None and count >= max_samples:
                        reason = "max_samples"
                        break
        except BrokenPipeError:
            reason = "sink_closed"
        finally:
            self._running = False
            # also runs on KeyboardInterrupt so buffered output is not lost
            if reason != "sink_closed" and not self._flush_sink():
                reason = "sink_closed"
        if reason == "sink_closed":
            logger.info("Output closed by reader; stopping")
        log_event(logger, "stream_finished", samples=self.processed - start, reason=reason)
        return self.processed - start

    def _flush_sink(self) -> bool:
        try:
            self.sink.flush()
        except BrokenPipeError:
            return False
        return True

    def stop(self) -> None:
        self._running = False
