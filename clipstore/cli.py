from __future__ import annotations

import argparse
import json
import shutil
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .core.errors import ClipstoreError
from .media import Classification, MediaProber, MediaTranscoder, SubprocessToolRunner, classify_dimensions, derive_key

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "check", False):
        _run_environment_check()
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except ClipstoreError as exc:
        console.print(f"[red]{exc.code}[/red]: {exc.message}")
        sys.exit(2)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI.

    Returns:
        The argument parser.
    """
    parser = argparse.ArgumentParser(description="Clipstore media developer CLI")
    parser.add_argument("--check", action="store_true", help="Validate presence of ffmpeg/ffprobe dependencies")
    parser.add_argument("--timeout", type=float, default=300.0, help="Timeout in seconds for each tool run")

    subparsers = parser.add_subparsers(dest="command")

    probe_parser = subparsers.add_parser("probe", help="Print the first stream geometry and its classification")
    probe_parser.add_argument("--file", required=True, help="Path to the source media file")
    probe_parser.set_defaults(func=_cmd_probe)

    faststart_parser = subparsers.add_parser("faststart", help="Move the MP4 index to the front of the file")
    faststart_parser.add_argument("--file", required=True, help="Path to the source MP4")
    faststart_parser.add_argument("--output", help="Destination path (defaults to <file>.processing)")
    faststart_parser.set_defaults(func=_cmd_faststart)

    key_parser = subparsers.add_parser("key", help="Derive a fresh storage key")
    key_parser.add_argument("--extension", required=True, help="File extension, e.g. .mp4")
    key_parser.add_argument(
        "--classification",
        choices=[item.value for item in Classification],
        help="Optional classification prefix",
    )
    key_parser.set_defaults(func=_cmd_key)

    return parser


def _cmd_probe(args: argparse.Namespace) -> None:
    path = Path(args.file)
    prober = MediaProber(SubprocessToolRunner(default_timeout_s=args.timeout), timeout_s=args.timeout)
    geometry = prober.probe_geometry(path)
    classification = classify_dimensions(*geometry) if geometry else Classification.other
    payload = {
        "file": str(path),
        "width": geometry[0] if geometry else None,
        "height": geometry[1] if geometry else None,
        "classification": classification.value,
    }
    console.print_json(json.dumps(payload))


def _cmd_faststart(args: argparse.Namespace) -> None:
    source = Path(args.file)
    transcoder = MediaTranscoder(SubprocessToolRunner(default_timeout_s=args.timeout), timeout_s=args.timeout)
    output = transcoder.optimize_for_streaming(source)
    if args.output:
        destination = Path(args.output)
        shutil.move(str(output), destination)
        output = destination
    console.print(f"[green]Wrote[/green] {output}")


def _cmd_key(args: argparse.Namespace) -> None:
    console.print(derive_key(args.classification, args.extension))


def _run_environment_check() -> None:
    """Check that ffmpeg and ffprobe are installed."""
    for binary in ("ffmpeg", "ffprobe"):
        try:
            result = SubprocessToolRunner(default_timeout_s=10).run(binary, ["-version"])
        except ClipstoreError as exc:
            console.print(f"[red]{binary}[/red]: {exc.message}")
            continue
        first_line = result.stdout.splitlines()[0] if result.stdout.strip() else "(no output)"
        console.print(f"[green]{binary}[/green]: {first_line}")


if __name__ == "__main__":  # pragma: no cover
    main()
