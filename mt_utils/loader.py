"""Import test files so their suites declare themselves."""

import importlib.util
import logging
import re
import sys
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType

log = logging.getLogger(__name__)

SEARCH_DIRS = ("src", "lib", "test", "tests")


def extend_sys_path(root: Path) -> None:
    """Make the project and its conventional source/test dirs importable."""
    for path in (root, *(root / name for name in SEARCH_DIRS)):
        if path.is_dir() and str(path) not in sys.path:
            sys.path.append(str(path))


def module_name(file: Path, root: Path) -> str:
    """Derive a dotted module name from a file path."""
    try:
        relative = file.resolve().relative_to(root.resolve())
    except ValueError:
        relative = Path(file.name)
    parts = [re.sub(r"\W", "_", part) for part in relative.with_suffix("").parts]
    return ".".join(parts)


def load_test_files(files: Sequence[str], *, root: Path) -> Sequence[ModuleType]:
    """Import each test file once.

    Errors raised while importing (including configuration errors from
    duplicate test declarations) propagate and abort the run.
    """
    modules: list[ModuleType] = []

    for file in files:
        name = module_name(Path(file), root)
        if (module := sys.modules.get(name)) is not None:
            modules.append(module)
            continue

        spec = importlib.util.spec_from_file_location(name, file)
        if spec is None or spec.loader is None:
            log.warning("Cannot load %s", file)
            continue

        log.debug("Loading %s as %s", file, name)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            del sys.modules[name]
            raise
        modules.append(module)

    return modules
