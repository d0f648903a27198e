"""Location sources feeding position reports into the track registry."""

from pysitaware.sources.base import LocationSource, parse_positions
from pysitaware.sources.factory import (
    SOURCE_FACTORIES,
    SourceFactory,
    build_sources,
    http_source_factory,
    mqtt_source_factory,
    register_source_factory,
)
from pysitaware.sources.http import HttpLocationSource
from pysitaware.sources.manual import ManualLocationSource
from pysitaware.sources.mqtt import MqttLocationSource, MqttSettings

__all__ = [
    "SOURCE_FACTORIES",
    "HttpLocationSource",
    "LocationSource",
    "ManualLocationSource",
    "MqttLocationSource",
    "MqttSettings",
    "SourceFactory",
    "build_sources",
    "http_source_factory",
    "mqtt_source_factory",
    "parse_positions",
    "register_source_factory",
]
