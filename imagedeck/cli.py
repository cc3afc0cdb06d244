"""Command-line front door for imagedeck.

Wires an in-process session owner to one primary window, opens the target
path, and prints the active tab. ``--interactive`` steps through items and
opens further paths from stdin commands.
"""

from __future__ import annotations

import argparse
import locale
import logging
import sys
from pathlib import Path
from typing import TextIO

from .entry_tree import entry_identity
from .host import LocalSessionOwner
from .runtime import config
from .sync.bus import InProcessBus
from .windows import ExplorerWindow, ViewerWindow

PRIMARY_LABEL = "main"

LOGGER = logging.getLogger("imagedeck.cli")


def pump(bus: InProcessBus, window: ViewerWindow | ExplorerWindow, max_rounds: int = 64) -> None:
    """Deliver queued events until the bus is quiet."""
    for _ in range(max_rounds):
        window.tick()
        if bus.dispatch_pending() == 0:
            return


def render_viewer(window: ViewerWindow) -> str:
    """Return the active tab's sibling group, marking the shown item."""
    view = window.active_view
    if view is None:
        return "(no tab)\n"
    out = [f"{view.path}\n"]
    current = view.current
    if current is None:
        out.append("(nothing to view)\n")
        return "".join(out)
    for index, leaf in enumerate(view.cursor.group):
        marker = ">" if index == view.cursor.index else " "
        out.append(f"{marker} {leaf.name}\n")
    out.append(f"[{view.cursor.index + 1}/{len(view.cursor.group)}] {entry_identity(current)}\n")
    return "".join(out)


def render_explorer(window: ExplorerWindow) -> str:
    """Return the active tab's folder page."""
    tab = window.store.active
    if tab is None:
        return "(no tab)\n"
    out = [f"{tab.path or '(devices)'}  page {tab.page}/{tab.page_count}\n"]
    for item in tab.items:
        thumb = f"  [{Path(item.thumbpath).name}]" if item.thumbpath else ""
        out.append(f"  {item.filename}{thumb}\n")
    if not tab.items:
        out.append("  (no folders)\n")
    return "".join(out)


def run_interactive(
    bus: InProcessBus,
    owner: LocalSessionOwner,
    window: ViewerWindow | ExplorerWindow,
    stdin: TextIO,
    stdout: TextIO,
) -> None:
    """Read commands line by line.

    ``n``/``p`` step to the next/previous item, ``o <path>`` forwards an
    "open with" request for ``path`` and ``q`` quits.
    """
    for line in stdin:
        command, _, argument = line.strip().partition(" ")
        if command == "q":
            return
        if command == "o" and argument:
            owner.open_file(argument.strip())
        elif command == "n":
            window.handle_key("ArrowRight")
        elif command == "p":
            window.handle_key("ArrowLeft")
        else:
            stdout.write(f"unknown command: {line.strip()!r}\n")
            continue
        owner.poll_watches()
        pump(bus, window)
        render = render_viewer if isinstance(window, ViewerWindow) else render_explorer
        stdout.write(render(window))


def main(default_path: Path | None = None) -> None:
    """Parse CLI arguments and open a viewer (or explorer) tab on the target path.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    parser = argparse.ArgumentParser(description="Browse images, videos and archive pages by folder.")
    parser.add_argument("path", nargs="?", default=None, help="Directory, archive or media file. Defaults to current directory.")
    parser.add_argument("--explorer", action="store_true", help="Open a paginated folder explorer instead of a viewer.")
    parser.add_argument("--interactive", action="store_true", help="Read n/p/q navigation and 'o PATH' open commands from stdin.")
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr.")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        LOGGER.debug("keeping default collation locale")

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path)
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")

    classifier = config.load_classifier()
    bus = InProcessBus()
    owner = LocalSessionOwner(bus, classifier, page_size=config.load_page_size())

    window: ViewerWindow | ExplorerWindow
    if args.explorer:
        if not path.is_dir():
            raise SystemExit(f"Not a directory: {path}")
        window = ExplorerWindow(
            bus,
            PRIMARY_LABEL,
            primary=True,
            search_delay=config.load_search_debounce_seconds(),
        )
        window.open()
        window.open_tab(str(path))
    else:
        window = ViewerWindow(
            bus,
            PRIMARY_LABEL,
            classifier,
            primary=True,
            selection_delay=config.load_selection_debounce_seconds(),
            search_delay=config.load_search_debounce_seconds(),
        )
        window.open()
        if not window.open_path(str(path)):
            raise SystemExit(f"Cannot open: {path}")

    pump(bus, window)
    render = render_viewer if isinstance(window, ViewerWindow) else render_explorer
    sys.stdout.write(render(window))
    if args.interactive:
        run_interactive(bus, owner, window, sys.stdin, sys.stdout)
    window.close()
