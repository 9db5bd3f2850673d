# genebuild/models/distance.py
"""
Distance bookkeeping for EST discrimination.

Distances between loci and shared evidence are stored once per unordered
pair and distance class. A second write for the same key is an anomaly: it
is logged and the first value is kept.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from genebuild.exceptions import ValidationError


class DistanceClass(Enum):
    """How a distance was obtained"""
    NUCLEOTIDE = "norm"
    INFORMATIVE_SITES = "inf"


@dataclass(frozen=True)
class PairKey:
    """Unordered pair of identifiers"""
    first: str
    second: str

    @classmethod
    def of(cls, a: str, b: str) -> 'PairKey':
        first, second = sorted((a, b))
        return cls(first, second)

    def __contains__(self, name: str) -> bool:
        return name in (self.first, self.second)

    def other(self, name: str) -> str:
        """The member of the pair that is not `name`"""
        if name == self.first:
            return self.second
        if name == self.second:
            return self.first
        raise KeyError(name)


@dataclass(frozen=True)
class DistanceEntry:
    """One stored distance"""
    key: PairKey
    distance_class: DistanceClass
    distance: float

    def __post_init__(self):
        if not 0.0 <= self.distance <= 1.0:
            raise ValidationError(
                f"Distance for {self.key.first}/{self.key.second} out of range: {self.distance}"
            )


class DistanceTable:
    """Write-once map of (pair, distance class) to distance"""

    def __init__(self):
        self.logger = logging.getLogger("genebuild.models.distance")
        self._entries: Dict[Tuple[PairKey, DistanceClass], DistanceEntry] = {}

    def store(self, a: str, b: str, distance: float,
              distance_class: DistanceClass = DistanceClass.INFORMATIVE_SITES) -> DistanceEntry:
        """Store a distance unless one already exists for the pair

        Returns:
            The entry held by the table (the earlier one on a duplicate write)
        """
        key = PairKey.of(a, b)
        existing = self._entries.get((key, distance_class))
        if existing is not None:
            self.logger.warning(
                f"Distance {distance_class.value} between {a} and {b} already stored "
                f"({existing.distance}); ignoring new value {distance}"
            )
            return existing

        entry = DistanceEntry(key=key, distance_class=distance_class, distance=float(distance))
        self._entries[(key, distance_class)] = entry
        return entry

    def get(self, a: str, b: str,
            distance_class: DistanceClass = DistanceClass.INFORMATIVE_SITES) -> Optional[float]:
        entry = self._entries.get((PairKey.of(a, b), distance_class))
        return entry.distance if entry else None

    def has(self, a: str, b: str,
            distance_class: DistanceClass = DistanceClass.INFORMATIVE_SITES) -> bool:
        return (PairKey.of(a, b), distance_class) in self._entries

    def entries(self, distance_class: Optional[DistanceClass] = None) -> Iterator[DistanceEntry]:
        for (_, cls), entry in self._entries.items():
            if distance_class is None or cls == distance_class:
                yield entry

    def __contains__(self, item) -> bool:
        if isinstance(item, tuple) and len(item) == 2 and isinstance(item[1], DistanceClass):
            return item in self._entries
        return any(key == item for key, _ in self._entries)

    def __len__(self) -> int:
        return len(self._entries)
