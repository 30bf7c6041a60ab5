from .service import StreamingService
from .sinks import RawByteSink, SampleSink, TerminalRenderer, build_sink, quantize, render_line
from .sources import ByteStreamSource, SimulatedSource, StreamReadError, build_source

__all__ = [
    "StreamingService",
    "SampleSink",
    "RawByteSink",
    "TerminalRenderer",
    "build_sink",
    "quantize",
    "render_line",
    "ByteStreamSource",
    "SimulatedSource",
    "StreamReadError",
    "build_source",
]
