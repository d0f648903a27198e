"""Location source subscribed to an MQTT topic carrying JSON positions."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pysitaware.exceptions import LocationSourceError
from pysitaware.models.position import AssetPosition
from pysitaware.sources.base import LocationSource, parse_positions


@dataclass(frozen=True)
class MqttSettings:
    """Broker connection details."""

    host: str
    topic: str
    port: int = 1883
    client_id: str = ""
    username: str | None = None
    password: str | None = None
    tls: bool = False
    keepalive: int = 60


def decode_position_payload(payload: bytes, *, default_type: str | None = None) -> list[AssetPosition]:
    """Decode an MQTT payload (UTF-8 JSON) into positions."""
    parsed = json.loads(payload.decode("utf-8"))
    return parse_positions(parsed, default_type=default_type)


class MqttPositionRuntime:
    """Threaded paho-mqtt client that hands decoded positions to an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_position: Callable[[AssetPosition], None],
        default_type: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_position = on_position
        self._default_type = default_type
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def handle_payload(self, topic: str, payload: bytes) -> int:
        """Decode one message and schedule its positions on the loop; return how many."""
        try:
            positions = decode_position_payload(payload, default_type=self._default_type)
        except (UnicodeDecodeError, json.JSONDecodeError):
            self._logger.debug("MQTT payload parse failure topic=%s", topic, exc_info=True)
            return 0
        for position in positions:
            self._loop.call_soon_threadsafe(self._on_position, position)
        return len(positions)

    def start(self, settings: MqttSettings) -> None:
        """Connect and subscribe with provided broker details."""
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s topic=%s",
            settings.host,
            settings.port,
            settings.topic,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
        )
        client.enable_logger(self._logger)
        if settings.username is not None:
            client.username_pw_set(settings.username, settings.password)
        if settings.tls:
            client.tls_set()

        self._topic = settings.topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            if self._topic:
                self._logger.debug("MQTT subscribing topic=%s", self._topic)
                c.subscribe(self._topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self.handle_payload(msg.topic, msg.payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(settings.host, settings.port, keepalive=settings.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")


class MqttLocationSource(LocationSource):
    """Yields positions published on an MQTT topic."""

    def __init__(self, name: str, settings: MqttSettings, *, default_type: str | None = None) -> None:
        super().__init__(name)
        self._settings = settings
        self._default_type = default_type
        self._queue: asyncio.Queue[AssetPosition] = asyncio.Queue()
        self._runtime: MqttPositionRuntime | None = None

    @property
    def settings(self) -> MqttSettings:
        return self._settings

    async def on_start(self) -> None:
        loop = asyncio.get_running_loop()
        runtime = MqttPositionRuntime(
            loop=loop,
            on_position=self._queue.put_nowait,
            default_type=self._default_type,
        )
        try:
            await loop.run_in_executor(None, runtime.start, self._settings)
        except OSError as exc:
            raise LocationSourceError(
                f"Cannot connect to MQTT broker {self._settings.host}:{self._settings.port}",
                source=self.name,
            ) from exc
        self._runtime = runtime

    async def on_stop(self) -> None:
        runtime = self._runtime
        self._runtime = None
        if runtime is not None:
            await asyncio.get_running_loop().run_in_executor(None, runtime.stop)

    async def positions(self) -> AsyncIterator[AssetPosition]:
        while True:
            yield await self._queue.get()
