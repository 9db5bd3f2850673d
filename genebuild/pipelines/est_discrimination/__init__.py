"""
Assignment of ESTs shared between loci to their most likely locus
"""
from .clusterer import EvidenceClusterer, normalize_coverage_cutoff, within_twilight
from .calculators import (
    DistanceCalculator, InformativeSiteDistanceCalculator, NucleotideDistanceCalculator, locus_pairs
)

__all__ = [
    'EvidenceClusterer', 'normalize_coverage_cutoff', 'within_twilight',
    'DistanceCalculator', 'InformativeSiteDistanceCalculator', 'NucleotideDistanceCalculator',
    'locus_pairs',
]
