"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path

from .app import MurmurApp
from .services.logger import setup_logging
from .services.orchestrator import TranscriptionSnapshot
from .store.settings_store import SettingsStore

DEFAULT_SETTINGS = Path.home() / ".murmur" / "settings.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="murmur")
    parser.add_argument("--settings", default=str(DEFAULT_SETTINGS), help="Settings JSON path.")
    parser.add_argument("--log-dir", default="logs", help="Directory for murmur.log.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr.")
    sub = parser.add_subparsers(dest="command")

    config_cmd = sub.add_parser("config", help="Show or update client settings.")
    config_cmd.add_argument("assignments", nargs="*", help="key=value pairs to store.")

    for name, help_text in (
        ("transcribe", "Transcribe a recording (cache first)."),
        ("retranscribe", "Discard the cached transcript and chat, then transcribe again."),
        ("continue", "Request a fresh transcript for an incomplete one."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("recording", help="Recording path or name under the recordings root.")
        cmd.add_argument("--segments", action="store_true", help="Print timed segments.")

    chat_cmd = sub.add_parser("chat", help="Ask about one recording, or everything with --global.")
    chat_cmd.add_argument("message")
    chat_cmd.add_argument("--recording", help="Recording to chat about.")
    chat_cmd.add_argument("--global", dest="use_global", action="store_true", help="Use the global scope.")

    daily_cmd = sub.add_parser("daily", help="Generate today's report if missing.")
    daily_cmd.add_argument("--date", help="Day as YYYY-MM-DD (default: today).")

    sub.add_parser("reports", help="List saved daily reports.")
    sub.add_parser("recordings", help="List recordings.")
    sub.add_parser("health", help="Check the brain service.")

    serve_cmd = sub.add_parser("serve", help="Run the brain service.")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=19001)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    if args.command == "serve":
        import uvicorn

        uvicorn.run("src.api.app:create_app", factory=True, host=args.host, port=args.port)
        return 0

    setup_logging(args.log_dir, verbose=args.verbose)
    store = SettingsStore(Path(args.settings))

    if args.command == "config":
        updates = {}
        for item in args.assignments:
            key, sep, value = item.partition("=")
            if not sep:
                print(f"Expected key=value, got {item!r}", file=sys.stderr)
                return 2
            updates[key.strip()] = value
        settings = store.update(**updates) if updates else store.get()
        for key, value in asdict(settings).items():
            print(f"{key} = {value!r}")
        return 0

    return asyncio.run(_run(args, MurmurApp(store.get())))


async def _run(args: argparse.Namespace, app: MurmurApp) -> int:
    try:
        if args.command in {"transcribe", "retranscribe", "continue"}:
            return await _transcribe(args, app)
        if args.command == "chat":
            if args.use_global or not args.recording:
                manager = app.global_chat()
                await manager.aload()
            else:
                orchestrator = app.orchestrator(app.resolve(args.recording))
                snapshot = await orchestrator.start()
                if snapshot.error:
                    print(f"Transcript unavailable: {snapshot.error}", file=sys.stderr)
                manager = orchestrator.chat
            reply = await manager.send(args.message)
            if reply is not None:
                print(reply.text)
            return 0
        if args.command == "daily":
            day = date.fromisoformat(args.date) if args.date else date.today()
            report = await app.daily.generate_if_missing(day)
            if report is None:
                print(f"No report for {day.isoformat()}.")
                return 1
            print(report.markdown_content)
            return 0
        if args.command == "reports":
            for report in app.daily.list_reports():
                print(f"{report.date:%Y-%m-%d %H:%M}  {report.id}")
            return 0
        if args.command == "recordings":
            for recording in app.library.list():
                cached = "T" if app.cache.exists(app.cache.transcript_key(recording.identity)) else "-"
                print(f"{cached} {recording.created_at:%Y-%m-%d %H:%M}  {recording.size_bytes:>10}  {recording.name}")
            return 0
        if args.command == "health":
            ok = await app.api.health()
            print("ok" if ok else "unreachable")
            return 0 if ok else 1
        return 0
    finally:
        await app.aclose()


async def _transcribe(args: argparse.Namespace, app: MurmurApp) -> int:
    orchestrator = app.orchestrator(app.resolve(args.recording))
    if args.verbose:
        orchestrator.subscribe(lambda snap: print(f"[{snap.state.value}] {snap.status}", file=sys.stderr))
    if args.command == "retranscribe":
        await orchestrator.retranscribe()
    elif args.command == "continue":
        await orchestrator.continue_transcription()
    else:
        await orchestrator.start()
    await orchestrator.drain()
    snapshot = orchestrator.snapshot()
    _print_snapshot(snapshot, show_segments=args.segments)
    return 1 if snapshot.error else 0


def _print_snapshot(snapshot: TranscriptionSnapshot, *, show_segments: bool) -> None:
    if snapshot.error:
        print(f"Failed: {snapshot.error}", file=sys.stderr)
        return
    print(f"Status: {snapshot.status}")
    if snapshot.incomplete:
        print("Warning: transcript may be incomplete; run `murmur continue`.")
    if show_segments:
        for segment in snapshot.segments:
            speaker = f"{segment.speaker}: " if segment.speaker else ""
            print(f"{segment.start_seconds:8.2f}  {speaker}{segment.text}")
    else:
        print(snapshot.full_text)
    if snapshot.summary:
        print("\nSummary:\n" + snapshot.summary)
    elif snapshot.summary_error:
        print(f"\nSummary failed: {snapshot.summary_error}", file=sys.stderr)


if __name__ == "__main__":
    raise SystemExit(main())
