"""
Command-line interface for hecrelay.

``hecrelay replay EVENT_FILE`` runs a captured Kinesis invocation event
through the relay (``--dry-run`` prints the HEC request body instead of
sending it). ``hecrelay sample MESSAGE...`` prints a synthetic invocation
event for local testing.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Sequence

import orjson

from ..core import diagnostics
from ..core.decoder import BatchDecoder
from ..core.errors import HecRelayError
from ..core.events import DATA_MESSAGE
from ..core.settings import Settings, get_settings
from ..handler import process_batch
from ..sinks.hec import HecForwarder, HecForwarderConfig
from ..testing.factories import (
    make_kinesis_event,
    make_log_envelope,
    make_log_events,
)


def _load_event(path: str) -> Any:
    if path == "-":
        return orjson.loads(sys.stdin.buffer.read())
    return orjson.loads(Path(path).read_bytes())


def _dry_run(event: Any, settings: Settings) -> bytes:
    decoded = BatchDecoder(strategy=settings.decoder.strategy).decode(event)
    forwarder = HecForwarder(HecForwarderConfig.from_settings(settings.hec))
    for item in decoded.events:
        forwarder.accumulate(item)
    return forwarder.preview_body()


def _cmd_replay(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.strategy:
        decoder = settings.decoder.model_copy(update={"strategy": args.strategy})
        settings = settings.model_copy(update={"decoder": decoder})
    diagnostics.configure(settings.core.log_level)
    event = _load_event(args.event_file)
    if args.dry_run:
        body = _dry_run(event, settings)
        sys.stdout.write(body.decode("utf-8") + "\n")
        return 0
    result = asyncio.run(process_batch(event, settings=settings))
    print(result.summary)
    return 0


def _cmd_sample(args: argparse.Namespace) -> int:
    messages = args.messages or ["hello"]
    envelopes = [
        make_log_envelope(
            make_log_events(messages),
            message_type=args.message_type,
            log_group=args.log_group,
        )
        for _ in range(args.records)
    ]
    event = make_kinesis_event(*envelopes)
    rendered = orjson.dumps(event, option=orjson.OPT_INDENT_2)
    sys.stdout.write(rendered.decode("utf-8") + "\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hecrelay",
        description="Relay Kinesis-delivered CloudWatch Logs to Splunk HEC.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Run a captured invocation event")
    replay.add_argument(
        "event_file", help="Path to the event JSON, or '-' for stdin"
    )
    replay.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the HEC request body instead of sending it",
    )
    replay.add_argument(
        "--strategy",
        choices=("all", "last"),
        default=None,
        help="Override which records of the batch are decoded",
    )
    replay.set_defaults(func=_cmd_replay)

    sample = sub.add_parser("sample", help="Print a synthetic invocation event")
    sample.add_argument("messages", nargs="*", help="Log messages to include")
    sample.add_argument("--records", type=int, default=1, help="Number of records")
    sample.add_argument(
        "--message-type",
        default=DATA_MESSAGE,
        help="Envelope messageType (default: DATA_MESSAGE)",
    )
    sample.add_argument("--log-group", default="/aws/lambda/sample")
    sample.set_defaults(func=_cmd_sample)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except HecRelayError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, orjson.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
