#!/usr/bin/env python3
"""
netpulse CLI -- latency, jitter, packet loss and throughput from the terminal.

Usage::

    python netpulse.py                          # rich dashboard
    python netpulse.py --simple                 # plain text
    python netpulse.py --json                   # JSON to stdout
    python netpulse.py --ping-count 20          # more latency samples
    python netpulse.py --download-sizes 1000000,10000000
    python netpulse.py --no-save                # don't record in history
    python netpulse.py --set ping_timeout_ms=2000
    python netpulse.py --show-config
"""
from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from typing import Any, Dict, List, Optional, Sequence

from pulse.config import (
    DEFAULTS,
    config_path,
    load_config,
    parse_config_value,
    parse_sizes,
    set_config_value,
    validate_config,
)
from pulse.constants import (
    MAX_PAYLOAD_SIZE,
    MAX_PING_COUNT,
    MAX_PING_TIMEOUT_MS,
    MIN_PING_COUNT,
    MIN_PING_TIMEOUT_MS,
)
from pulse.download import DownloadProbe
from pulse.history import record_result
from pulse.info import ConnectionInfoProvider
from pulse.latency import LatencyProbe
from pulse.logging_setup import configure_logging
from pulse.models import TestResult
from pulse.orchestrator import TestOrchestrator
from pulse.upload import UploadProbe
from ui.dashboard import (
    PhaseProgressDisplay,
    console,
    format_simple,
    print_connection_info,
    print_final_results,
    print_header,
)


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

def _validate(
    ping_count: int,
    ping_timeout_ms: int,
    download_sizes: Sequence[int],
    upload_sizes: Sequence[int],
) -> None:
    """Raise ``ValueError`` if any parameter is out of range."""
    if not MIN_PING_COUNT <= ping_count <= MAX_PING_COUNT:
        raise ValueError(f"Ping count must be between {MIN_PING_COUNT} and {MAX_PING_COUNT}")
    if not MIN_PING_TIMEOUT_MS <= ping_timeout_ms <= MAX_PING_TIMEOUT_MS:
        raise ValueError(
            f"Ping timeout must be between {MIN_PING_TIMEOUT_MS} and {MAX_PING_TIMEOUT_MS} ms"
        )
    for label, sizes in (("Download", download_sizes), ("Upload", upload_sizes)):
        if not sizes:
            raise ValueError(f"{label} sizes must not be empty")
        for size in sizes:
            if not 0 < size <= MAX_PAYLOAD_SIZE:
                raise ValueError(f"{label} size {size} must be between 1 and {MAX_PAYLOAD_SIZE} bytes")


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

def build_orchestrator(settings: Dict[str, Any]) -> TestOrchestrator:
    """Wire probes and collaborators from merged config/CLI *settings*."""
    return TestOrchestrator(
        latency=LatencyProbe(
            url=settings["latency_url"],
            attempts=settings["ping_count"],
            timeout_ms=settings["ping_timeout_ms"],
            delay_ms=settings["ping_delay_ms"],
        ),
        download=DownloadProbe(settings["download_url"], settings["download_sizes"]),
        upload=UploadProbe(settings["upload_url"], settings["upload_sizes"]),
        info_provider=ConnectionInfoProvider(settings["info_url"]),
        persist=record_result if settings["save_history"] else None,
        server_label=settings["server_label"],
    )


async def run_test(
    settings: Dict[str, Any],
    *,
    json_output: bool = False,
    simple: bool = False,
) -> Optional[TestResult]:
    """Execute one run; returns the result, or ``None`` if it was interrupted."""
    show_ui = not json_output and not simple

    orchestrator = build_orchestrator(settings)
    if show_ui:
        print_header()
        orchestrator.on_progress = PhaseProgressDisplay()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.stop)
    except (NotImplementedError, RuntimeError):
        pass  # e.g. Windows event loops

    try:
        result = await orchestrator.start()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass

    if result is None:
        partial = orchestrator.result or TestResult()
        if show_ui:
            console.print("\n[yellow]Test cancelled by user[/yellow]")
            print_final_results(partial, title="Partial Results")
        elif json_output:
            print(json.dumps({**partial.to_dict(), "cancelled": True}, indent=2))
        else:
            print("Test cancelled by user", file=sys.stderr)
            print(format_simple(partial))
        return None

    if show_ui:
        print_connection_info(result)
        print_final_results(result)
    elif simple:
        print(format_simple(result))
    else:
        print(json.dumps(result.to_dict(), indent=2))

    return result


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _merge_settings(args: argparse.Namespace, config: Dict[str, Any]) -> Dict[str, Any]:
    settings = dict(config)
    if args.ping_count is not None:
        settings["ping_count"] = args.ping_count
    if args.ping_timeout is not None:
        settings["ping_timeout_ms"] = args.ping_timeout
    if args.download_sizes is not None:
        settings["download_sizes"] = parse_sizes(args.download_sizes)
    if args.upload_sizes is not None:
        settings["upload_sizes"] = parse_sizes(args.upload_sizes)
    if args.no_save:
        settings["save_history"] = False
    if args.verbose:
        settings["log_level"] = "DEBUG"
    return settings


def _check_settings(settings: Dict[str, Any]) -> None:
    """Raise ``ValueError`` if merged *settings* can't drive a run."""
    validate_config(settings)
    _validate(
        ping_count=settings["ping_count"],
        ping_timeout_ms=settings["ping_timeout_ms"],
        download_sizes=settings["download_sizes"],
        upload_sizes=settings["upload_sizes"],
    )


def _apply_set(pairs: List[str]) -> None:
    updates: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        key = key.strip()
        updates[key] = parse_config_value(key, raw)

    # Nothing is written unless the resulting config is usable.
    _check_settings({**load_config(), **updates})
    for key, value in updates.items():
        path = set_config_value(key, value)
        console.print(f"[green]Saved[/green] {key} to {path}")


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="netpulse -- network latency and throughput tester",
    )
    # Output modes
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--simple", "-s", action="store_true", help="Simple output mode (no dashboard)")

    # Test parameters
    parser.add_argument("--ping-count", type=int, metavar="N", help="Number of latency attempts (default: 10)")
    parser.add_argument("--ping-timeout", type=int, metavar="MS", help="Per-attempt latency timeout in ms (default: 5000)")
    parser.add_argument("--download-sizes", type=str, metavar="BYTES,...", help="Comma-separated download payload sizes")
    parser.add_argument("--upload-sizes", type=str, metavar="BYTES,...", help="Comma-separated upload payload sizes")

    # History / config / logging
    parser.add_argument("--no-save", action="store_true", help="Don't record this run in the history file")
    parser.add_argument("--set", action="append", default=[], metavar="KEY=VALUE", help=f"Persist a config value ({', '.join(DEFAULTS)})")
    parser.add_argument("--show-config", action="store_true", help="Print the effective configuration and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    try:
        if args.set:
            _apply_set(args.set)
            return

        settings = _merge_settings(args, load_config())
        _check_settings(settings)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    if args.show_config:
        console.print(f"[dim]{config_path()}[/dim]")
        console.print_json(json.dumps(settings))
        return

    configure_logging(settings["log_level"])

    try:
        result = asyncio.run(run_test(settings, json_output=args.json, simple=args.simple))
    except KeyboardInterrupt:
        # Loops without signal-handler support land here instead of stop().
        console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)
    if result is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
