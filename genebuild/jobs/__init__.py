"""
Annotation jobs for the genebuild pipeline
"""
from .base import AnnotationJob
from .pseudogene_job import PseudogeneJob
from .discrimination_job import EvidenceDiscriminationJob
from .factory import create_job, create_sequence_fetcher
from .runner import execute_job, run_analysis

__all__ = [
    'AnnotationJob', 'PseudogeneJob', 'EvidenceDiscriminationJob',
    'create_job', 'create_sequence_fetcher', 'execute_job', 'run_analysis',
]
