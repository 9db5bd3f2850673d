#!/usr/bin/env python3
"""
Sequence utilities for the genebuild pipeline
Functions for working with nucleotide sequences and region names
"""
import re
import logging
from typing import Optional, Tuple

from Bio.Seq import complement as _bio_complement
from Bio.Seq import reverse_complement as _bio_reverse_complement

logger = logging.getLogger("genebuild.utils.sequence")

# Slices are named <chromosome>.<start>-<end>, e.g. "20.1000001-2000000"
SLICE_NAME_PATTERN = re.compile(r'^(?P<chr>.+)\.(?P<start>\d+)-(?P<end>\d+)$')

NUCLEOTIDES = set('ACGTN')


def parse_slice_name(name: str) -> Optional[Tuple[str, int, int]]:
    """Parse a slice name into (chromosome, start, end)

    Args:
        name: Region name, e.g. "20.1000001-2000000"

    Returns:
        Tuple of chromosome name and 1-based inclusive bounds, or None
        when the name is a plain sequence region name
    """
    if not name:
        return None
    match = SLICE_NAME_PATTERN.match(name)
    if not match:
        return None
    return match.group('chr'), int(match.group('start')), int(match.group('end'))


def slice_to_chromosome(name: str, position: int) -> Tuple[str, int]:
    """Map a slice-relative position onto its chromosome

    Plain region names are returned unchanged.
    """
    parsed = parse_slice_name(name)
    if parsed is None:
        return name, position
    chr_name, chr_start, _ = parsed
    return chr_name, chr_start + position - 1


def reverse_complement(sequence: str) -> str:
    """Reverse complement of a nucleotide string (case preserved)"""
    return str(_bio_reverse_complement(sequence))


def nucleotide_length(sequence: Optional[str]) -> int:
    """Count unambiguous nucleotide characters (ACGTN) in a sequence"""
    if not sequence:
        return 0
    return sum(1 for base in sequence.upper() if base in NUCLEOTIDES)


def complement(sequence: str) -> str:
    """Complement of a nucleotide string without reversing it"""
    return str(_bio_complement(sequence))
