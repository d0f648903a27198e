"""pysitaware - situation awareness for tracked assets and HF-radar current fields."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysitaware")
except PackageNotFoundError:
    __version__ = "0+local"
from pysitaware.awareness import SituationAwareness
from pysitaware.config import SitAwareConfig
from pysitaware.exceptions import (
    InvalidSampleError,
    LocationSourceError,
    SitAwareConfigError,
    SitAwareError,
    SitAwareTransportError,
)
from pysitaware.grid import CellAggregator, GridCell, read_samples, write_samples
from pysitaware.models import AssetColor, AssetPosition, CellKey, RendezvousRow, VectorSample, parse_sample
from pysitaware.planning import decision_support, plan_rendezvous
from pysitaware.scheduler import PeriodicHandle, PeriodicScheduler
from pysitaware.tracking.events import (
    CollectingNotificationSink,
    LoggingNotificationSink,
    Notification,
    NotificationKind,
    NotificationSink,
)
from pysitaware.tracking.registry import TrackRegistry
from pysitaware.tracking.track import AssetTrack, DuplicatePolicy

__all__ = [
    "__version__",
    "AssetColor",
    "AssetPosition",
    "AssetTrack",
    "CellAggregator",
    "CellKey",
    "CollectingNotificationSink",
    "DuplicatePolicy",
    "GridCell",
    "InvalidSampleError",
    "LocationSourceError",
    "LoggingNotificationSink",
    "Notification",
    "NotificationKind",
    "NotificationSink",
    "PeriodicHandle",
    "PeriodicScheduler",
    "RendezvousRow",
    "SitAwareConfig",
    "SitAwareConfigError",
    "SitAwareError",
    "SitAwareTransportError",
    "SituationAwareness",
    "TrackRegistry",
    "VectorSample",
    "decision_support",
    "parse_sample",
    "plan_rendezvous",
    "read_samples",
    "write_samples",
]
