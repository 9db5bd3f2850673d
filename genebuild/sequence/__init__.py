"""
Sequence-level building blocks: distances, evidence alignments,
informative sites and sequence retrieval
"""
from .distance import SequenceDistanceEngine, DistanceMatrix
from .alignment import AlignmentBuilder, EvidenceAlignment, GENOMIC_ROW, EXON_ROW
from .informative_sites import InformativeSites, LocusAlignment
from .codon_alignment import codon_align
from .fetchers import (
    SequenceFetcher, GenomeAccess, SequenceSlicer, AlignmentSource, EvidenceSource,
    IndexedFastaFetcher, EnaSequenceFetcher, ChromosomeFileSlicer
)

__all__ = [
    'SequenceDistanceEngine', 'DistanceMatrix',
    'AlignmentBuilder', 'EvidenceAlignment', 'GENOMIC_ROW', 'EXON_ROW',
    'InformativeSites', 'LocusAlignment', 'codon_align',
    'SequenceFetcher', 'GenomeAccess', 'SequenceSlicer', 'AlignmentSource', 'EvidenceSource',
    'IndexedFastaFetcher', 'EnaSequenceFetcher', 'ChromosomeFileSlicer',
]
