#!/usr/bin/env python3
"""
Codon-based pairwise alignment of two coding sequences.

The coding sequences are translated, the proteins aligned with BLOSUM62 and
the codons threaded back onto the protein alignment, so that gaps always
fall between whole codons.
"""
import logging
from typing import Tuple

from Bio.Align import PairwiseAligner, substitution_matrices
from Bio.Seq import translate

from genebuild.exceptions import ValidationError

logger = logging.getLogger("genebuild.sequence.codon_alignment")

CODON_GAP = "---"


def _protein_aligner() -> PairwiseAligner:
    aligner = PairwiseAligner()
    aligner.mode = 'global'
    aligner.substitution_matrix = substitution_matrices.load("BLOSUM62")
    aligner.open_gap_score = -10
    aligner.extend_gap_score = -0.5
    return aligner


def _codons(sequence: str) -> list:
    usable = len(sequence) - len(sequence) % 3
    return [sequence[i:i + 3] for i in range(0, usable, 3)]


def codon_align(first: str, second: str, table: int = 1) -> Tuple[str, str]:
    """Align two coding sequences codon by codon

    Args:
        first: First coding sequence
        second: Second coding sequence
        table: NCBI genetic code used for translation

    Returns:
        The two gapped nucleotide sequences, equal in length

    Raises:
        ValidationError: If either sequence is shorter than one codon
    """
    codons1 = _codons(first.upper())
    codons2 = _codons(second.upper())
    if not codons1 or not codons2:
        raise ValidationError("Codon alignment needs at least one codon per sequence")

    protein1 = translate(''.join(codons1), table=table)
    protein2 = translate(''.join(codons2), table=table)

    alignment = _protein_aligner().align(protein1, protein2)[0]
    gapped1, gapped2 = alignment[0], alignment[1]

    threaded = []
    for gapped, codons in ((gapped1, codons1), (gapped2, codons2)):
        index = 0
        out = []
        for residue in gapped:
            if residue == '-':
                out.append(CODON_GAP)
            else:
                out.append(codons[index])
                index += 1
        threaded.append(''.join(out))

    logger.debug(f"Codon alignment of {len(codons1)} and {len(codons2)} codons "
                 f"over {len(gapped1)} columns")
    return threaded[0], threaded[1]
