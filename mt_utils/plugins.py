"""Optional integrations discovered from entry points."""

import importlib.util
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from typing import TextIO

from mt_utils.models.options import RunOptions
from mt_utils.reporter import StatisticsReporter

log = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "mt_utils.plugins"


@dataclass(frozen=True, kw_only=True)
class PluginManifest:
    """Manifest describing an optional integration.

    ``requires`` lists importable modules the integration needs; when any
    is missing the integration is skipped. ``setup`` runs before tests are
    executed and ``reporter_factory`` adds a reporter (e.g. a desktop
    notifier) next to the default one.
    """

    requires: Sequence[str] = ()
    setup: Callable[[RunOptions], None] | None = None
    reporter_factory: Callable[[TextIO, RunOptions], StatisticsReporter] | None = None


@dataclass(frozen=True, kw_only=True)
class Capabilities:
    """Integrations enabled for this process."""

    enabled: Mapping[str, PluginManifest] = field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.enabled

    def setup(self, options: RunOptions) -> None:
        """Initialize every enabled integration."""
        for name, manifest in self.enabled.items():
            if manifest.setup is not None:
                log.debug("Setting up plugin %s", name)
                manifest.setup(options)

    def reporters(
        self, io: TextIO, options: RunOptions
    ) -> Sequence[StatisticsReporter]:
        """Build the extra reporters contributed by integrations."""
        return [
            manifest.reporter_factory(io, options)
            for manifest in self.enabled.values()
            if manifest.reporter_factory is not None
        ]


def detect_capabilities(group: str = ENTRY_POINT_GROUP) -> Capabilities:
    """Probe installed integrations once, skipping unavailable ones.

    Args:
        group: Entry point group to scan

    Returns:
        The integrations whose entry point loaded and whose required
        modules are importable.

    """
    enabled: dict[str, PluginManifest] = {}

    for entry in entry_points(group=group):
        try:
            manifest: PluginManifest = entry.load()
        except ImportError as exc:
            log.debug("Plugin %s unavailable: %s", entry.name, exc)
            continue

        missing = [name for name in manifest.requires if not module_available(name)]
        if missing:
            log.debug("Plugin %s skipped, missing %s", entry.name, ", ".join(missing))
            continue

        enabled[entry.name] = manifest

    if enabled:
        log.info("Enabled plugins: %s", ", ".join(enabled))
    return Capabilities(enabled=enabled)


def module_available(name: str) -> bool:
    """Check if a module can be imported without importing it."""
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False
