"""
Processed pseudogene detection from cDNA-to-genome alignments
"""
from .classifier import PseudogeneClassifier, ClassifierOptions, BEST_MATCH, POTENTIAL_PSEUDOGENE
from .strand import SpliceSiteChecker, SiteClass, classify_site_pair

__all__ = [
    'PseudogeneClassifier', 'ClassifierOptions', 'BEST_MATCH', 'POTENTIAL_PSEUDOGENE',
    'SpliceSiteChecker', 'SiteClass', 'classify_site_pair',
]
