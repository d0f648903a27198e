"""Rolling per-cell aggregation of vector-field samples.

Each grid cell keeps a *head* sample (the value handed to render and export
collaborators) plus the history of samples received after it.  Nothing is
merged on ingestion; :meth:`CellAggregator.calculate_mean` folds the history
into the head on demand, typically from a periodic sweep.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from pysitaware.exceptions import InvalidSampleError
from pysitaware.models.sample import CellKey, VectorSample, parse_sample

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class GridCell:
    """A grid point with its current head sample and arrival-ordered history.

    Cells compare equal when their keys are equal.  They are identified, not
    ordered: no ordering operators are defined and sorting cells raises
    ``TypeError``.
    """

    __slots__ = ("_head", "_history", "_key", "_lock")

    def __init__(self, head: VectorSample) -> None:
        self._key = head.cell_key
        self._head = head
        self._history: list[VectorSample] = []
        self._lock = threading.Lock()

    @property
    def key(self) -> CellKey:
        return self._key

    @property
    def head(self) -> VectorSample:
        return self._head

    def history(self) -> tuple[VectorSample, ...]:
        with self._lock:
            return tuple(self._history)

    def append(self, sample: VectorSample) -> None:
        with self._lock:
            self._history.append(sample)

    def calculate_mean(self) -> bool:
        """Fold the history into the head.

        Speed and heading become the arithmetic means of the history.  The
        heading mean is a plain average of degree values, so headings on
        either side of north average towards south (350 and 10 give 180).
        The head timestamp becomes the latest history timestamp; on ties the
        entry seen last wins.  History is left untouched.
        """
        with self._lock:
            if not self._history:
                return False
            most_recent: datetime | None = None
            speed_sum = 0.0
            heading_sum = 0.0
            for sample in self._history:
                if most_recent is None or not most_recent > sample.observed_at:
                    most_recent = sample.observed_at
                speed_sum += sample.speed_cm_s
                heading_sum += sample.heading_degrees
            size = len(self._history)
            self._head = self._head.model_copy(
                update={
                    "speed_cm_s": speed_sum / size,
                    "heading_degrees": heading_sum / size,
                    "observed_at": most_recent,
                    "raw": {},
                }
            )
            return True

    def purge_before(self, cutoff: datetime | None) -> int:
        """Drop history entries strictly older than *cutoff*; return how many were removed."""
        with self._lock:
            if cutoff is None or not self._history:
                return 0
            kept = [sample for sample in tuple(self._history) if not sample.observed_at < cutoff]
            removed = len(self._history) - len(kept)
            self._history[:] = kept
            return removed

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GridCell):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return f"GridCell({self._key}, history={len(self._history)})"


class CellAggregator:
    """Thread-safe map of :class:`CellKey` to :class:`GridCell`.

    Writers touching the same cell are serialised by that cell's lock; the
    map itself is guarded by a separate lock so different cells can be
    updated independently.  Cells are never removed, even when purging
    empties their history.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._cells: dict[CellKey, GridCell] = {}
        self._lock = threading.Lock()

    def _cell(self, key: CellKey | VectorSample) -> GridCell | None:
        if isinstance(key, VectorSample):
            key = key.cell_key
        with self._lock:
            return self._cells.get(key)

    def add_sample(self, sample: VectorSample) -> CellKey:
        """Record *sample*: a new cell takes it as head, a known cell appends it to history."""
        key = sample.cell_key
        with self._lock:
            cell = self._cells.get(key)
            if cell is None:
                self._cells[key] = GridCell(sample)
                return key
        cell.append(sample)
        return key

    def add_raw(self, raw: Mapping[str, Any]) -> CellKey | None:
        """Validate and record a raw sample; invalid samples are dropped and ``None`` returned."""
        try:
            sample = parse_sample(raw)
        except InvalidSampleError:
            _logger.debug("Dropping invalid vector sample %s", raw, exc_info=True)
            return None
        return self.add_sample(sample)

    def calculate_mean(self, key: CellKey | VectorSample) -> bool:
        cell = self._cell(key)
        if cell is None:
            return False
        return cell.calculate_mean()

    def purge_before(self, key: CellKey | VectorSample, cutoff: datetime | None) -> int:
        cell = self._cell(key)
        if cell is None:
            return 0
        return cell.purge_before(cutoff)

    def snapshot(self, key: CellKey | VectorSample) -> VectorSample | None:
        """Return the cell's current head values without history, or ``None`` for an unknown cell."""
        cell = self._cell(key)
        if cell is None:
            return None
        return cell.head.model_copy()

    def history(self, key: CellKey | VectorSample) -> tuple[VectorSample, ...]:
        cell = self._cell(key)
        if cell is None:
            return ()
        return cell.history()

    def keys(self) -> list[CellKey]:
        with self._lock:
            return list(self._cells)

    def cells(self) -> list[GridCell]:
        with self._lock:
            return list(self._cells.values())

    def snapshots(self) -> list[VectorSample]:
        return [cell.head.model_copy() for cell in self.cells()]

    def calculate_all_means(self) -> int:
        """Recompute every cell's head; return how many cells had history."""
        return sum(1 for cell in self.cells() if cell.calculate_mean())

    def purge_all_before(self, cutoff: datetime | None) -> int:
        """Purge every cell; return the total number of history entries removed."""
        if cutoff is None:
            return 0
        return sum(cell.purge_before(cutoff) for cell in self.cells())

    def sweep(self, max_age: timedelta) -> int:
        """Purge history older than ``now - max_age`` and recompute means.

        This is the periodic aggregation callback.  Returns the number of
        cells whose head was refreshed.
        """
        cutoff = self._clock() - max_age
        removed = self.purge_all_before(cutoff)
        refreshed = self.calculate_all_means()
        _logger.debug("Vector-field sweep cutoff=%s removed=%d refreshed=%d", cutoff, removed, refreshed)
        return refreshed

    def __len__(self) -> int:
        with self._lock:
            return len(self._cells)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, VectorSample):
            key = key.cell_key
        with self._lock:
            return key in self._cells

    def __iter__(self) -> Iterator[CellKey]:
        return iter(self.keys())
