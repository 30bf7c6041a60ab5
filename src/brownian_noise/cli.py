"""Command line interface: filter a byte stream into brown(ish) noise."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Sequence, TextIO

from pydantic import ValidationError

from . import __version__
from .config import StreamSettings, load_settings
from .filters import FilterCascade
from .logging_utils import configure_logging
from .streaming import StreamingService, StreamReadError, build_sink, build_source

logger = logging.getLogger(__name__)

EPILOG = """\
RESPONSE is the filter's 'memory constant' between zero and one; higher
values give a lower cutoff. N_POLES is the number of filter stages. Any
third argument prints the output as a vertical trace instead of raw bytes.

Input is read from standard input, for example:
    brownian-noise 0.7 3 print < /dev/urandom
    brownian-noise 0.95 3 < /dev/urandom | aplay -f cd
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brownian-noise",
        description="A command line number stream (audio) low-pass filter.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    # positionals are validated by hand so bad input shows usage instead of an error
    parser.add_argument("response", nargs="?", metavar="RESPONSE", help="Filter response in (0, 1)")
    parser.add_argument("poles", nargs="?", metavar="N_POLES", help="Number of filter stages (>= 1)")
    parser.add_argument("option", nargs="?", metavar="OPTION", help="Any value prints a terminal trace")
    parser.add_argument("--config", type=Path, help="YAML or JSON settings file")
    parser.add_argument("--gain", type=float, dest="output_gain", help="Output volume gain (default: 9)")
    parser.add_argument("--width", type=int, help="Terminal width for the trace (default: 220)")
    parser.add_argument("--sleep-ms", type=float, dest="sleep_ms", help="Pause between trace lines (default: 10)")
    parser.add_argument("--simulate", action="store_true", help="Use generated white noise instead of stdin")
    parser.add_argument("--seed", type=int, help="Seed for --simulate")
    parser.add_argument("--max-samples", type=int, help="Stop after this many samples")
    parser.add_argument("--impulse", type=int, metavar="N", help="Print the N-sample impulse response and exit")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON logs")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _parse_filter_args(args: argparse.Namespace) -> tuple[float, int] | None:
    try:
        response = float(args.response)
        poles = int(args.poles)
    except (TypeError, ValueError):
        return None
    if poles < 1 or not 0.0 < response < 1.0:
        return None
    return response, poles


def _resolve_settings(parser: argparse.ArgumentParser, args: argparse.Namespace) -> StreamSettings:
    overrides = {"output_gain": args.output_gain, "width": args.width, "sleep_ms": args.sleep_ms}
    try:
        return load_settings(args.config).merged(overrides)
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        parser.error(str(exc))


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
    text_out: TextIO | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level, json_logs=args.json_logs or None)
    text_out = text_out if text_out is not None else sys.stdout

    parsed = _parse_filter_args(args)
    if parsed is None:
        parser.print_help(file=text_out)
        return 0
    response, poles = parsed
    settings = _resolve_settings(parser, args)
    cascade = FilterCascade.lowpass(response, poles)

    if args.impulse is not None:
        for value in cascade.impulse_response(length=args.impulse):
            text_out.write(f"{value:.6f}\n")
        return 0

    if args.simulate:
        source = build_source({"type": "simulated", "seed": args.seed})
    else:
        source = build_source({"type": "stdin"}, stream=stdin if stdin is not None else sys.stdin.buffer)
    sink = build_sink(
        args.option is not None,
        settings,
        binary_stream=stdout if stdout is not None else sys.stdout.buffer,
        text_stream=text_out,
    )

    service = StreamingService(source, cascade, sink, settings)
    try:
        service.run(max_samples=args.max_samples)
    except StreamReadError as exc:
        logger.error("Stopping: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted after %d samples", service.processed)
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
