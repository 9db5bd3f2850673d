"""
Data models for the genebuild pipeline
"""
from .alignment import SupportingFeature, AlignedBlock, AlignmentRecord
from .gene import Exon, Transcript, Locus, EvidenceItem, CandidatePseudogene
from .distance import DistanceClass, PairKey, DistanceEntry, DistanceTable
from .results import MatchType, ClusteringStage, RankedAlignment

__all__ = [
    'SupportingFeature', 'AlignedBlock', 'AlignmentRecord',
    'Exon', 'Transcript', 'Locus', 'EvidenceItem', 'CandidatePseudogene',
    'DistanceClass', 'PairKey', 'DistanceEntry', 'DistanceTable',
    'MatchType', 'ClusteringStage', 'RankedAlignment',
]
