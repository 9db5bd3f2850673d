"""
Utility helpers for the genebuild pipeline
"""
from .sequence import (
    parse_slice_name, slice_to_chromosome, reverse_complement, complement, nucleotide_length
)

__all__ = ['parse_slice_name', 'slice_to_chromosome', 'reverse_complement', 'complement',
           'nucleotide_length']
