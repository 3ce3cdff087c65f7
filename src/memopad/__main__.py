"""Entry point: python -m memopad [serve|list|import-legacy]

- "serve":         REST API (default)
- "list":          Print memos in order
- "import-legacy": Copy the legacy flat list into the configured backend
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path

from memopad.config import MemoPadConfig, load_config
from memopad.core import build_memo_pad


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _prompt_location() -> Path | None:
    """Ask on stdin for a storage location. Empty input or EOF cancels."""
    try:
        sys.stdout.write("Memo location (empty to cancel): ")
        sys.stdout.flush()
        raw = sys.stdin.readline()
    except KeyboardInterrupt:
        return None
    text = raw.strip()
    return Path(text) if text else None


async def _ready_pad(config: MemoPadConfig):
    pad = build_memo_pad(config, picker=_prompt_location)
    if await pad.initialize() != "ready" and not await pad.select_location():
        print("No memo location selected.", file=sys.stderr)
        return None
    return pad


async def _list(config: MemoPadConfig) -> int:
    pad = await _ready_pad(config)
    if pad is None:
        return 1
    for memo in pad.memos:
        marker = "*" if memo.id == pad.selected_id else " "
        print(f"{marker} {memo.order:3d}  {memo.title}  ({memo.id})")
    await pad.close()
    return 0


async def _import_legacy(config: MemoPadConfig) -> int:
    if config.storage.legacy_path is None:
        print("No legacy_path configured (set MEMOPAD_LEGACY).", file=sys.stderr)
        return 1
    pad = build_memo_pad(config, picker=_prompt_location)
    if not await pad.repository.request_location():
        print("No memo location selected.", file=sys.stderr)
        return 1
    existing = await pad.repository.load_all()
    imported = await pad.repository.migrate_from_legacy(pad.legacy, existing=existing)
    print(f"Imported {len(imported)} memo(s).")
    return 0


async def _serve(config: MemoPadConfig) -> int:
    from memopad.server import serve

    pad = build_memo_pad(config)
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_event.set)
    await serve(pad, config.server, shutdown_event)
    return 0


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "serve"
    commands = {"serve": _serve, "list": _list, "import-legacy": _import_legacy}

    if cmd not in commands:
        print("Usage: python -m memopad [serve|list|import-legacy]")
        print("  serve          REST API (default)")
        print("  list           Print memos in order")
        print("  import-legacy  Import the legacy memo list")
        sys.exit(1)

    config = load_config()
    _setup_logging(config.log_level)
    sys.exit(asyncio.run(commands[cmd](config)))


if __name__ == "__main__":
    main()
