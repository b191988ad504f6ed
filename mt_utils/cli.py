"""CLI entry point for the ``mt`` test runner."""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from mt_utils.color import color_enabled, colorize
from mt_utils.config import Environment
from mt_utils.loader import extend_sys_path, load_test_files
from mt_utils.models.options import RunOptions
from mt_utils.resolver import resolve_entries
from mt_utils.runner import add_engine_arguments, autorun, options_from_namespace
from mt_utils.watcher import Watcher

log = logging.getLogger(__name__)

DESCRIPTION = """\
A better test runner for unittest.

You can run specific files by using `file:number`.

  $ mt tests/models/test_user.py:42

You can run tests by name (caveat: you need to underscore the name):

  $ mt tests/models/test_user.py --name /validations/

You can also run specific directories:

  $ mt tests/models

To exclude tests by name, use --exclude:

  $ mt tests/models --exclude /validations/
"""

EPILOG = """\
To ignore files, you can use a `.minitestignore`.
Each line can be a partial file/dir name.
Lines starting with # are ignored.

  # This is a comment
  tests/fixtures
"""


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ``mt`` command."""
    parser = argparse.ArgumentParser(
        prog="mt",
        usage="mt [OPTIONS] [FILES|DIR]...",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_engine_arguments(parser)
    parser.add_argument(
        "--watch", action="store_true", help="Watch for changes, and re-run tests."
    )
    parser.add_argument(
        "entries",
        nargs="*",
        metavar="FILES|DIR",
        help="Files, directories, globs or file:line entries.",
    )
    return parser


def default_test_command(options: RunOptions) -> str:
    """Replay command template pointing back at this CLI."""
    comment = "# %{description}"
    if color_enabled(no_color=options.no_color, stream=sys.stdout):
        comment = colorize(comment, "blue")
    return f"mt %{{location}}:%{{line}} {comment}"


def run(options: RunOptions, entries: Sequence[str], *, root: Path) -> int:
    """Resolve entries, load test files and hand over to the engine."""
    resolved = resolve_entries(entries, root=root)

    engine_options = options
    if resolved.name_filter is not None:
        engine_options = options.model_copy(update={"name": resolved.name_filter})

    if options.watch:
        watcher = Watcher(options=engine_options, entries=entries, root=root)
        asyncio.run(watcher.run())
        return 0

    if not resolved.files:
        print("\nNo tests found.")

    extend_sys_path(root)
    load_test_files(resolved.files, root=root)

    os.environ.setdefault("MT_TEST_COMMAND", default_test_command(options))

    sys.argv[1:] = engine_options.to_args()
    return autorun()


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=Environment.from_environ().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    options = options_from_namespace(args)
    sys.exit(run(options, args.entries, root=Path.cwd()))


if __name__ == "__main__":  # pragma: no cover
    main()
