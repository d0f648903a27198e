"""Location source interface."""

from __future__ import annotations

import abc
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from pysitaware.models.position import AssetPosition

_logger = logging.getLogger(__name__)

# Keys AssetPosition accepts for its type field.
_TYPE_KEYS = ("type", "positionType", "assetType")


def parse_positions(payload: Any, *, default_type: str | None = None) -> list[AssetPosition]:
    """Validate a feed payload into positions, dropping invalid items.

    Accepts a single object, a list of objects, or an object wrapping a list
    under ``"positions"``.
    """
    if isinstance(payload, Mapping) and isinstance(payload.get("positions"), list):
        items: Iterable[Any] = payload["positions"]
    elif isinstance(payload, Mapping):
        items = [payload]
    elif isinstance(payload, list):
        items = payload
    else:
        _logger.debug("Ignoring position payload of type %s", type(payload).__name__)
        return []

    positions: list[AssetPosition] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        data = dict(item)
        if default_type is not None and all(data.get(key) is None for key in _TYPE_KEYS):
            data["type"] = default_type
        try:
            positions.append(AssetPosition.model_validate(data))
        except ValidationError:
            _logger.debug("Dropping invalid position %s", item, exc_info=True)
    return positions


class LocationSource(abc.ABC):
    """A producer of asset positions.

    The coordinator calls :meth:`on_start` before consuming
    :meth:`positions` and :meth:`on_stop` when shutting down.  Sources start
    disabled; disabled sources are not consumed.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._enabled = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    async def on_start(self) -> None:
        """Acquire resources (sessions, connections)."""

    async def on_stop(self) -> None:
        """Release resources."""

    @abc.abstractmethod
    def positions(self) -> AsyncIterator[AssetPosition]:
        """Lazy, unbounded stream of positions."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, enabled={self._enabled})"
