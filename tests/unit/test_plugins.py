"""Tests for optional integration discovery."""

from io import StringIO
from typing import TextIO
from unittest.mock import MagicMock, patch

from mt_utils.models.options import RunOptions
from mt_utils.plugins import Capabilities, PluginManifest, detect_capabilities
from mt_utils.reporter import StatisticsReporter


def entry(name: str, *, loads: object = None, error: Exception | None = None) -> MagicMock:
    mock = MagicMock()
    mock.name = name
    if error is not None:
        mock.load.side_effect = error
    else:
        mock.load.return_value = loads
    return mock


def test_detect_capabilities_enables_available_plugins() -> None:
    """Plugins whose requirements import are enabled."""
    manifest = PluginManifest(requires=("json",))

    with patch("mt_utils.plugins.entry_points", return_value=[entry("json", loads=manifest)]):
        capabilities = detect_capabilities()

    assert "json" in capabilities
    assert capabilities.enabled["json"] is manifest


def test_detect_capabilities_skips_missing_requirements() -> None:
    """Plugins needing absent modules are skipped."""
    manifest = PluginManifest(requires=("definitely_not_installed_module",))

    with patch("mt_utils.plugins.entry_points", return_value=[entry("notify", loads=manifest)]):
        capabilities = detect_capabilities()

    assert "notify" not in capabilities


def test_detect_capabilities_skips_plugins_failing_to_import() -> None:
    """An entry point raising ImportError is skipped."""
    broken = entry("broken", error=ImportError("no module"))

    with patch("mt_utils.plugins.entry_points", return_value=[broken]):
        capabilities = detect_capabilities()

    assert capabilities.enabled == {}


def test_capabilities_setup_and_reporters() -> None:
    """Enabled plugins are set up and contribute reporters."""
    setup = MagicMock()

    def reporter_factory(io: TextIO, options: RunOptions) -> StatisticsReporter:
        return StatisticsReporter(io, options)

    capabilities = Capabilities(
        enabled={
            "first": PluginManifest(setup=setup),
            "second": PluginManifest(reporter_factory=reporter_factory),
        }
    )
    options = RunOptions(seed=1)

    capabilities.setup(options)
    reporters = capabilities.reporters(StringIO(), options)

    setup.assert_called_once_with(options)
    assert len(reporters) == 1
    assert reporters[0].options is options
