"""Explicit registry of location-source factories.

Sources are declared here (or registered by the application) instead of
being discovered at runtime.  Building is isolated per source: one factory
failing is logged and skipped, the rest are still built.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from pysitaware.config import SitAwareConfig
from pysitaware.sources.base import LocationSource
from pysitaware.sources.http import HttpLocationSource
from pysitaware.sources.manual import ManualLocationSource
from pysitaware.sources.mqtt import MqttLocationSource, MqttSettings

_logger = logging.getLogger(__name__)

SourceFactory = Callable[[SitAwareConfig], LocationSource]

SOURCE_FACTORIES: dict[str, SourceFactory] = {
    "Manual": lambda _config: ManualLocationSource("Manual"),
}


def register_source_factory(name: str, factory: SourceFactory) -> None:
    """Add or replace a factory in the default registry."""
    SOURCE_FACTORIES[name] = factory


def http_source_factory(
    name: str,
    url: str,
    *,
    poll_interval_s: float = 60.0,
    default_type: str | None = None,
) -> SourceFactory:
    def _build(_config: SitAwareConfig) -> LocationSource:
        return HttpLocationSource(name, url, poll_interval_s=poll_interval_s, default_type=default_type)

    return _build


def mqtt_source_factory(name: str, settings: MqttSettings, *, default_type: str | None = None) -> SourceFactory:
    def _build(_config: SitAwareConfig) -> LocationSource:
        return MqttLocationSource(name, settings, default_type=default_type)

    return _build


def build_sources(
    config: SitAwareConfig,
    factories: Mapping[str, SourceFactory] | None = None,
) -> list[LocationSource]:
    """Instantiate every factory; failures are logged and do not stop the others."""
    sources: list[LocationSource] = []
    for name, factory in (factories if factories is not None else SOURCE_FACTORIES).items():
        try:
            source = factory(config)
        except Exception:
            _logger.error("Failed to build location source %s", name, exc_info=True)
            continue
        sources.append(source)
    return sources
