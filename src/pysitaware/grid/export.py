"""CSV export/import of vector-field samples.

Column order and units are fixed::

    lat,lon,speedCmS,headingDeg,timestamp,resolutionKm,sourceInfo

with the timestamp written as ISO-8601 UTC.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from typing import IO

from pysitaware._constants import SAMPLE_CSV_FIELDS
from pysitaware.exceptions import InvalidSampleError
from pysitaware.models.sample import VectorSample, parse_sample

_logger = logging.getLogger(__name__)


def sample_to_row(sample: VectorSample) -> list[str]:
    return [
        repr(sample.latitude),
        repr(sample.longitude),
        repr(sample.speed_cm_s),
        repr(sample.heading_degrees),
        sample.observed_at.isoformat(),
        repr(sample.resolution_km),
        sample.source_info,
    ]


def write_samples(samples: Iterable[VectorSample], stream: IO[str]) -> int:
    """Write a header and one row per sample; return the number of rows written."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(SAMPLE_CSV_FIELDS)
    count = 0
    for sample in samples:
        writer.writerow(sample_to_row(sample))
        count += 1
    return count


def read_samples(stream: IO[str]) -> list[VectorSample]:
    """Parse samples from CSV text.

    The header row is optional.  Rows that are short or fail validation are
    skipped and logged; they never abort the whole read.
    """
    samples: list[VectorSample] = []
    for line_no, row in enumerate(csv.reader(stream), start=1):
        if not row or all(not cell.strip() for cell in row):
            continue
        if line_no == 1 and row[0].strip() == SAMPLE_CSV_FIELDS[0]:
            continue
        if len(row) < 5:
            _logger.debug("Skipping short sample row %d: %s", line_no, row)
            continue
        values = dict(zip(SAMPLE_CSV_FIELDS, (cell.strip() for cell in row), strict=False))
        # Trailing columns are optional.
        if not values.get("resolutionKm"):
            values.pop("resolutionKm", None)
        try:
            samples.append(
                parse_sample(
                    {
                        "latitude": values["lat"],
                        "longitude": values["lon"],
                        "speedCmS": values["speedCmS"],
                        "headingDeg": values["headingDeg"],
                        "timestamp": values["timestamp"],
                        "resolutionKm": values.get("resolutionKm"),
                        "sourceInfo": values.get("sourceInfo", ""),
                    }
                )
            )
        except InvalidSampleError:
            _logger.debug("Skipping invalid sample row %d: %s", line_no, row, exc_info=True)
    return samples
