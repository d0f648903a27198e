"""Internal constants shared across the library."""

# Mean Earth radius used for great-circle distances.
EARTH_RADIUS_M = 6_371_000.0

# A new report for an asset whose latest fix is younger than this does not
# raise a "new position" notification.
RECENT_UPDATE_THRESHOLD_S = 30.0

# Position types considered rendezvous targets.
SPOT_TAG = "SPOT Tag"
ARGOS_TAG = "Argos Tag"
TAG_TYPES: frozenset[str] = frozenset({SPOT_TAG, ARGOS_TAG})

# Default window (minutes) handed to render surfaces reading a track.
DEFAULT_TRACK_WINDOW_MINUTES = 15.0

# Threshold to distinguish epoch seconds from milliseconds.
MS_THRESHOLD = 1_000_000_000_000

# Column order of the vector-field CSV export.
SAMPLE_CSV_FIELDS: tuple[str, ...] = (
    "lat",
    "lon",
    "speedCmS",
    "headingDeg",
    "timestamp",
    "resolutionKm",
    "sourceInfo",
)
