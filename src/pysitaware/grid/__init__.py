"""Vector-field grid layer.

Aggregates HF-radar style current samples per exact grid point and exports
them for rendering collaborators.
"""

from pysitaware.grid.cells import CellAggregator, GridCell
from pysitaware.grid.export import read_samples, write_samples

__all__ = ["CellAggregator", "GridCell", "read_samples", "write_samples"]
