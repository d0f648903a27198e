"""Data models for position reports, vector-field samples and planning output."""

from pysitaware.models._base import SitAwareBaseModel, Timestamp, parse_timestamp
from pysitaware.models.position import AssetColor, AssetPosition
from pysitaware.models.rendezvous import RendezvousRow
from pysitaware.models.sample import CellKey, VectorSample, parse_sample

__all__ = [
    "AssetColor",
    "AssetPosition",
    "CellKey",
    "RendezvousRow",
    "SitAwareBaseModel",
    "Timestamp",
    "VectorSample",
    "parse_sample",
    "parse_timestamp",
]
