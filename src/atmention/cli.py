"""Entry point for the atmention CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import logging.handlers
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from atmention.config import MentionSettings, load_settings
from atmention.options import MentionOption, coerce_options

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def load_catalog(path: str) -> list[MentionOption]:
    """Read an option catalog: a JSON list, or an object with ``options``."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("options")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of options")
    return coerce_options(data)


def _configure_logging(level: str, log_file: str | None) -> logging.handlers.MemoryHandler | None:
    """Log to *log_file*, or hold records in memory until the TUI is gone.

    Stdout and stderr belong to the TUI while it runs; buffered records are
    written to stderr when the returned handler is flushed.
    """
    if log_file:
        logging.basicConfig(level=getattr(logging, level.upper()), format=_LOG_FORMAT, filename=log_file)
        return None

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    buffered = logging.handlers.MemoryHandler(
        capacity=1000,
        flushLevel=logging.CRITICAL + 1,
        target=stderr_handler,
    )
    logging.basicConfig(level=getattr(logging, level.upper()), handlers=[buffered])
    return buffered


async def run_picker(
    options: list[MentionOption],
    initial: Sequence[str],
    settings: MentionSettings,
    terminal: object | None = None,
) -> list[str] | None:
    """Run the mention field until submit (selected values) or Ctrl+C (None)."""
    from atmention.components import MentionInput
    from atmention.terminal import ProcessTerminal
    from atmention.tui import TUI

    loop = asyncio.get_running_loop()
    done: asyncio.Future[list[str] | None] = loop.create_future()

    def finish(result: list[str] | None) -> None:
        if not done.done():
            done.set_result(result)

    if terminal is None:
        terminal = ProcessTerminal(mouse=settings.mouse, alternate_screen=True)
    tui = TUI(terminal)  # type: ignore[arg-type]
    field = MentionInput(tui, options, default_value=initial, settings=settings)
    field.on_submit = finish
    field.on_interrupt = lambda: finish(None)

    tui.add_child(field)
    tui.set_focus(field)
    tui.start()
    try:
        return await done
    finally:
        field.dispose()
        tui.stop()


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="atmention",
        description="atmention: pick @-mentions in the terminal and print them as JSON",
    )
    parser.add_argument("--options", required=True, help="JSON file with the option catalog")
    parser.add_argument("--value", action="append", default=[], help="Preselected value (repeatable)")
    parser.add_argument("--trigger", default=None, help="Trigger character (default: @)")
    parser.add_argument("--config", default=None, help="Global config directory (default: ~/.atmention)")
    parser.add_argument("--no-mouse", action="store_true", help="Disable mouse reporting")
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    parser.add_argument("--log-file", default=None, help="Write log records to this file")
    args = parser.parse_args(argv)

    buffered = _configure_logging(args.log_level, args.log_file)

    overrides: dict[str, object] = {}
    if args.trigger is not None:
        overrides["trigger"] = args.trigger
    if args.no_mouse:
        overrides["mouse"] = False

    settings, error = load_settings(os.getcwd(), config_dir=args.config, overrides=overrides)
    if error is not None:
        logger.warning("Settings problem: %s", error)

    try:
        options = load_catalog(args.options)
    except (OSError, ValueError) as e:
        parser.error(f"cannot load options: {e}")

    from atmention.keybindings import MentionKeybindingsManager, set_mention_keybindings

    set_mention_keybindings(MentionKeybindingsManager(settings.keybindings))  # type: ignore[arg-type]

    try:
        result = asyncio.run(run_picker(options, args.value, settings))
    finally:
        if buffered is not None:
            buffered.flush()

    if result is None:
        return 130
    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
