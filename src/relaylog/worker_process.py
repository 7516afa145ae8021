"""
Default worker program for the out-of-process channel.

Reads newline-delimited JSON envelopes from stdin and appends each ``log``
payload as one line to ``--output`` (stdout when omitted). Exits 0 on a
``close`` envelope or end of input.

    python -m relaylog.worker_process --output /var/log/app/worker.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TextIO

from .core.errors import RelaylogError
from .core.io import open_append_stream
from .core.serialization import CLOSE_MESSAGE, LOG_MESSAGE, decode_envelope


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="relaylog-worker",
        description="Append relaylog envelopes read from stdin to a file.",
    )
    parser.add_argument("--output", type=Path, default=None, help="Append-mode log file")
    return parser.parse_args(argv)


def run(source: TextIO, sink: TextIO) -> int:
    for raw in source:
        line = raw.strip()
        if not line:
            continue
        try:
            message = decode_envelope(line)
        except (RelaylogError, ValueError) as exc:
            sys.stderr.write(f"relaylog-worker: skipping invalid envelope: {exc}\n")
            continue
        kind = message.get("type")
        if kind == CLOSE_MESSAGE:
            break
        if kind == LOG_MESSAGE:
            sink.write(f"{message.get('data', '')}\n")
            sink.flush()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.output is None:
        return run(sys.stdin, sys.stdout)
    stream = open_append_stream(args.output)
    try:
        return run(sys.stdin, stream)
    finally:
        stream.close()


if __name__ == "__main__":
    raise SystemExit(main())
