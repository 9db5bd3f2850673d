#!/usr/bin/env python3
"""
Pairwise distances over a multiple sequence alignment.

The distance between two aligned rows is the fraction of aligned columns
at which they differ: 1 - (matching columns / alignment length). Two gap
characters in the same column count as a match.
"""
import logging
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from genebuild.exceptions import ValidationError

# Rows carried in evidence alignments that never take part in comparisons
DEFAULT_EXCLUDED_ROWS = ("genomic_sequence",)

# Distances are reported to two decimal places
DISTANCE_PRECISION = 2


class DistanceMatrix:
    """Upper-triangular distance matrix with its row ordering

    Only cells (i, j) with i < j are filled; `get` answers both orders.
    """

    def __init__(self, names: Sequence[str], values: Optional[np.ndarray] = None):
        self.names: List[str] = list(names)
        self._index: Dict[str, int] = {name: i for i, name in enumerate(self.names)}
        size = len(self.names)
        self.values = values if values is not None else np.full((size, size), np.nan)

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def set(self, a: str, b: str, distance: float) -> None:
        i, j = sorted((self._index[a], self._index[b]))
        self.values[i, j] = distance

    def get(self, a: str, b: str) -> Optional[float]:
        """Distance between two named rows, None if it was not computable

        Raises:
            KeyError: If either name is not in the matrix
        """
        if a == b:
            return 0.0
        i, j = sorted((self._index[a], self._index[b]))
        value = self.values[i, j]
        if np.isnan(value):
            return None
        return float(value)

    def pairs(self) -> Iterator[Tuple[str, str, float]]:
        """Yield (name_i, name_j, distance) for every computed i < j cell"""
        size = len(self.names)
        for i in range(size):
            for j in range(i + 1, size):
                value = self.values[i, j]
                if not np.isnan(value):
                    yield self.names[i], self.names[j], float(value)


class SequenceDistanceEngine:
    """Computes all pairwise mismatch distances of an alignment"""

    def __init__(self, precision: int = DISTANCE_PRECISION):
        self.logger = logging.getLogger("genebuild.sequence.distance")
        self.precision = precision

    def distance(self, first: str, second: str) -> Optional[float]:
        """Mismatch fraction between two aligned strings

        Returns:
            Distance in [0, 1], or None for a zero-length alignment

        Raises:
            ValidationError: If the strings differ in length
        """
        if len(first) != len(second):
            raise ValidationError(
                f"Aligned sequences differ in length: {len(first)} != {len(second)}"
            )
        if not first:
            return None

        a = np.frombuffer(first.upper().encode('ascii'), dtype=np.uint8)
        b = np.frombuffer(second.upper().encode('ascii'), dtype=np.uint8)
        matches = int(np.count_nonzero(a == b))
        return round(1.0 - matches / len(first), self.precision)

    def compute_distances(self, alignment: Mapping[str, str],
                          exclude: Sequence[str] = DEFAULT_EXCLUDED_ROWS) -> DistanceMatrix:
        """Compute the distance between every pair of rows

        Args:
            alignment: Row name to aligned (gapped) sequence, all rows equal length
            exclude: Row names left out of the comparison

        Returns:
            DistanceMatrix indexed by the remaining row names in input order

        Raises:
            ValidationError: If the rows are not all the same length
        """
        rows = [(name, seq) for name, seq in alignment.items() if name not in exclude]
        lengths = {len(seq) for _, seq in rows}
        if len(lengths) > 1:
            raise ValidationError(
                "Aligned sequences must all have the same length",
                {"lengths": {name: len(seq) for name, seq in rows}}
            )

        matrix = DistanceMatrix([name for name, _ in rows])
        if not rows:
            return matrix

        if lengths == {0}:
            self.logger.warning("Zero length alignment; no distances computed")
            return matrix

        for i, (name_i, seq_i) in enumerate(rows):
            for name_j, seq_j in rows[i + 1:]:
                matrix.set(name_i, name_j, self.distance(seq_i, seq_j))

        self.logger.debug(f"Computed {len(rows) * (len(rows) - 1) // 2} distances "
                          f"over {lengths.pop()} columns")
        return matrix
