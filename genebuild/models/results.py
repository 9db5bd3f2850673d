# genebuild/models/results.py
"""
Result types shared by the pseudogene and EST discrimination pipelines
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any

from genebuild.models.alignment import AlignmentRecord


class MatchType(Enum):
    """How a shared evidence item relates to one of its loci"""
    SINGLE = "single"
    MULTIPLE = "multiple"
    INCORRECT = "incorrect"


class ClusteringStage(Enum):
    """Progress of an EvidenceClusterer run"""
    UNINITIALIZED = 0
    SHARED_EVIDENCE_DISCOVERED = 1
    DISTANCES_COMPUTED = 2
    CLUSTERED = 3

    def reached(self, other: 'ClusteringStage') -> bool:
        return self.value >= other.value


@dataclass(frozen=True)
class RankedAlignment:
    """Classifier verdict for one record of a source group"""
    record: AlignmentRecord
    rank: int
    label: str
    accepted: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_id': self.record.source_id,
            'rank': self.rank,
            'label': self.label,
            'accepted': self.accepted,
            'coverage': self.record.coverage,
            'percent_id': self.record.percent_id,
            'extent': self.record.extent,
            'strand': self.record.strand,
        }
