from __future__ import annotations

import io
import json
import logging
import os
import threading

import pytest

from brownian_noise.config import StreamSettings
from brownian_noise.filters import FilterCascade
from brownian_noise import logging_utils
from brownian_noise.logging_utils import configure_logging, log_event
from brownian_noise.streaming import (
    ByteStreamSource,
    RawByteSink,
    SampleSink,
    SimulatedSource,
    StreamingService,
    StreamReadError,
    TerminalRenderer,
    build_sink,
    build_source,
    quantize,
    render_line,
)


class RecordingSink(SampleSink):
    def __init__(self) -> None:
        self.values: list[float] = []

    def write(self, value: float) -> None:
        self.values.append(value)


class FailingStream(io.RawIOBase):
    def read(self, size: int = -1) -> bytes:
        raise OSError("device unplugged")


def test_byte_source_yields_signed_values_until_eof() -> None:
    stream = io.BytesIO(bytes([0, 1, 127, 128, 255]))
    assert list(ByteStreamSource(stream, chunk_size=2)) == [0, 1, 127, -128, -1]
    assert list(ByteStreamSource(io.BytesIO(b""))) == []


def test_byte_source_read_failure_raises() -> None:
    with pytest.raises(StreamReadError, match="device unplugged"):
        list(ByteStreamSource(FailingStream()))


def test_simulated_source_is_seeded_and_bounded() -> None:
    first = list(SimulatedSource(seed=5, limit=300))
    second = list(SimulatedSource(seed=5, limit=300))
    assert first == second
    assert len(first) == 300
    assert all(-128 <= v <= 127 for v in first)


def test_build_source_rejects_unknown_types() -> None:
    with pytest.raises(ValueError):
        build_source({"type": "mqtt"})
    with pytest.raises(ValueError):
        build_source({"type": "stdin"})
    source = build_source({"type": "stdin"}, stream=io.BytesIO(b"\x04"))
    assert list(source()) == [4]


def test_quantize_rounds_then_clips() -> None:
    assert quantize(2.634, 9) == 24
    assert quantize(-1.238, 9) == -11
    assert quantize(128.0, 9) == 127
    assert quantize(-128.0, 9) == -128


def test_raw_sink_writes_twos_complement_bytes() -> None:
    out = io.BytesIO()
    sink = RawByteSink(out, StreamSettings(), buffer_size=2)
    for value in [2.634, -1.238, 100.0]:
        sink.write(value)
    sink.flush()
    assert out.getvalue() == bytes([24, 245, 127])


def test_render_line_maps_clip_range_onto_width() -> None:
    assert render_line(0.0, 220, 128.0) == " " * 110 + "#\n"
    assert render_line(128.0, 220, 128.0) == " " * 220 + "#\n"
    assert render_line(-128.0, 220, 128.0) == "#\n"
    assert render_line(-500.0, 220, 128.0) == "#\n"
    assert render_line(64.0, 40, 128.0) == " " * 30 + "#\n"


def test_terminal_renderer_pauses_between_lines() -> None:
    out = io.StringIO()
    pauses: list[float] = []
    renderer = TerminalRenderer(out, StreamSettings(width=20, sleep_ms=10), sleep=pauses.append)
    renderer.write(0.0)
    renderer.write(0.0)
    assert out.getvalue() == (" " * 10 + "#\n") * 2
    assert pauses == [0.01, 0.01]


def test_build_sink_selects_mode() -> None:
    settings = StreamSettings()
    assert isinstance(build_sink(False, settings, binary_stream=io.BytesIO()), RawByteSink)
    assert isinstance(build_sink(True, settings, text_stream=io.StringIO()), TerminalRenderer)
    with pytest.raises(ValueError):
        build_sink(True, settings)


def test_service_scales_input_before_filtering() -> None:
    sink = RecordingSink()
    service = StreamingService(lambda: [100, 0, -128], FilterCascade.lowpass(0.9, 1), sink)

    assert service.run() == 3
    assert sink.values == pytest.approx([2.634013, 2.370612, -1.237986], abs=1e-5)


def test_service_end_to_end_raw_bytes() -> None:
    out = io.BytesIO()
    settings = StreamSettings()
    service = StreamingService(
        build_source({"type": "stdin"}, stream=io.BytesIO(bytes([100, 0, 128]))),
        FilterCascade.lowpass(0.9, 1),
        RawByteSink(out, settings),
        settings,
    )
    assert service.run() == 3
    assert out.getvalue() == bytes([24, 21, 245])


def test_service_stops_at_max_samples_and_empty_input() -> None:
    sink = RecordingSink()
    service = StreamingService(lambda: SimulatedSource(seed=1), FilterCascade.lowpass(0.9, 2), sink)
    assert service.run(max_samples=50) == 50
    assert len(sink.values) == 50

    empty = StreamingService(lambda: [], FilterCascade.lowpass(0.9, 2), RecordingSink())
    assert empty.run() == 0


def test_service_stop_ends_loop() -> None:
    class StoppingSink(RecordingSink):
        def write(self, value: float) -> None:
            super().write(value)
            if len(self.values) == 3:
                service.stop()

    sink = StoppingSink()
    service = StreamingService(lambda: [1] * 10, FilterCascade.lowpass(0.5, 1), sink)
    assert service.run() == 3


def test_service_treats_closed_pipe_as_end(caplog: pytest.LogCaptureFixture) -> None:
    class ClosedSink(RecordingSink):
        def write(self, value: float) -> None:
            if len(self.values) == 2:
                raise BrokenPipeError
            super().write(value)

    caplog.set_level(logging.INFO, logger="brownian_noise.streaming.service")
    service = StreamingService(lambda: [1] * 10, FilterCascade.lowpass(0.5, 1), ClosedSink())
    assert service.run() == 2
    assert "stream_finished" in caplog.text
    assert "sink_closed" in caplog.text


def test_service_propagates_read_failures() -> None:
    service = StreamingService(
        lambda: ByteStreamSource(FailingStream()),
        FilterCascade.lowpass(0.5, 1),
        RecordingSink(),
    )
    with pytest.raises(StreamReadError):
        service.run()


def test_byte_source_yields_available_bytes_without_waiting_for_eof() -> None:
    read_fd, write_fd = os.pipe()
    sink = RecordingSink()
    with os.fdopen(read_fd, "rb") as reader:
        service = StreamingService(
            lambda: ByteStreamSource(reader),
            FilterCascade.lowpass(0.9, 1),
            sink,
        )
        os.write(write_fd, bytes([100, 0, 0]))
        worker = threading.Thread(target=service.run, kwargs={"max_samples": 3}, daemon=True)
        worker.start()
        worker.join(timeout=5.0)
        try:
            assert not worker.is_alive()
            assert sink.values == pytest.approx([2.634013, 2.370612, 2.133550], abs=1e-5)
        finally:
            os.close(write_fd)
            worker.join(timeout=5.0)


@pytest.mark.parametrize("limit", [0, -5])
def test_service_non_positive_max_samples_processes_nothing(limit: int) -> None:
    out = io.BytesIO()
    service = StreamingService(
        lambda: [100, 0, 0],
        FilterCascade.lowpass(0.9, 1),
        RawByteSink(out, StreamSettings()),
    )
    assert service.run(max_samples=limit) == 0
    assert out.getvalue() == b""


def test_service_flushes_buffered_output_on_interrupt() -> None:
    def interrupted():
        yield 100
        yield 0
        raise KeyboardInterrupt

    out = io.BytesIO()
    service = StreamingService(interrupted, FilterCascade.lowpass(0.9, 1), RawByteSink(out, StreamSettings()))
    with pytest.raises(KeyboardInterrupt):
        service.run()
    assert out.getvalue() == bytes([24, 21])


def test_service_logs_progress_every_n_samples(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="brownian_noise.streaming.service")
    service = StreamingService(
        lambda: [0] * 5,
        FilterCascade.lowpass(0.9, 1),
        RecordingSink(),
        StreamSettings(log_every=2),
    )
    service.run()

    progress = [r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG]
    assert progress == ["Processed 2 samples (last=0.000)", "Processed 4 samples (last=0.000)"]


def test_log_event_emits_json_when_env_set(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(logging_utils, "_json_logs", None)
    monkeypatch.setenv("BROWNIAN_JSON_LOGS", "true")
    caplog.set_level(logging.INFO, logger="brownian_noise.tests")

    log_event(logging.getLogger("brownian_noise.tests"), "stream_finished", samples=3, reason="end_of_stream")

    assert json.loads(caplog.records[-1].getMessage()) == {
        "event": "stream_finished",
        "samples": 3,
        "reason": "end_of_stream",
    }


def test_configure_logging_uses_bare_messages_for_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logging_utils, "_json_logs", None)
    monkeypatch.setenv("BROWNIAN_JSON_LOGS", "true")
    configure_logging(level="INFO")

    handler = logging.getLogger().handlers[0]
    record = logging.makeLogRecord({"msg": '{"event": "x"}', "levelname": "INFO", "name": "demo"})
    assert handler.format(record) == '{"event": "x"}'
    assert logging.getLogger().level == logging.INFO
