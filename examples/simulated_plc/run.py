#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import argparse
import json
import math
import os
import random
import signal
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class _RuntimeState:
    stop: bool = False
    step: int = 0


def _utc_ts() -> str:
    # Human-friendly timestamp for console output
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3] + "Z"


def _values(state: _RuntimeState) -> Dict[str, Any]:
    # Slow sine wave around 21 degrees plus noise, machine toggles every 10 steps
    temp = 21.0 + 3.0 * math.sin(state.step / 10.0) + random.uniform(-0.2, 0.2)
    return {
        "temp": round(temp, 2),
        "running": (state.step // 10) % 2 == 0,
        "cycles": state.step,
    }


def _write_atomic(path: Path, data: Dict[str, Any]) -> None:
    # The bridge may read at any moment: never expose a half written file
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data), encoding="utf-8")
    os.replace(tmp, path)


def _install_signal_handlers(state: _RuntimeState) -> None:
    def _handle_stop(signum: int, frame: Any) -> None:  # noqa: ARG001
        state.stop = True

    signal.signal(signal.SIGINT, _handle_stop)
    signal.signal(signal.SIGTERM, _handle_stop)


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="plc-ditto-simulated-plc",
        description=(
            "Demo: simulate a PLC by rewriting a JSON file with changing values.\n\n"
            "Run the bridge against it with the mapping next to this script:\n"
            "  cd examples/simulated_plc\n"
            "  plc-ditto-bridge --thing-file thing.json --mapping-file mapping.json"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    ap.add_argument(
        "--path",
        default=None,
        help="JSON file to write. If omitted, uses plc.json next to this script.",
    )
    ap.add_argument(
        "--interval",
        type=float,
        default=0.5,
        help="Seconds between value updates (default: 0.5)",
    )
    ap.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print every written value",
    )
    args = ap.parse_args(argv)

    if args.interval <= 0:
        print("ERROR: --interval must be > 0", file=sys.stderr)
        return 2

    # Resolve relative to this file, not the current working directory
    path = Path(args.path) if args.path else Path(__file__).resolve().parent / "plc.json"

    state = _RuntimeState()
    _install_signal_handlers(state)
    print(f"[{_utc_ts()}] simulated_plc started: path={str(path)!r} interval={args.interval}s", flush=True)

    while not state.stop:
        values = _values(state)
        try:
            _write_atomic(path, values)
        except OSError as e:
            print(f"[{_utc_ts()}] ERROR: write failed: {e}", file=sys.stderr, flush=True)
        else:
            if not args.quiet:
                print(f"[{_utc_ts()}] {values!r}", flush=True)
        state.step += 1

        # Sleep in small steps so Ctrl+C stops quickly even with large interval
        remaining = float(args.interval)
        step = 0.1
        while remaining > 0 and not state.stop:
            time.sleep(step if remaining > step else remaining)
            remaining -= step

    print(f"[{_utc_ts()}] simulated_plc stopped", flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
