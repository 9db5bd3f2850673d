#!/usr/bin/env python3
"""
Informative sites between two loci.

The coding sequences of two loci are aligned globally; columns where both
have a base and the bases differ are informative, since they are the only
positions that can tell evidence from one locus apart from the other. Each
locus's evidence alignment is then cut down to its informative columns.
"""
import logging
from typing import Dict, List, NamedTuple, Optional, Tuple

from Bio.Align import PairwiseAligner

from genebuild.exceptions import ValidationError
from genebuild.sequence.alignment import EvidenceAlignment, EXON_ROW, GAP, GENOMIC_ROW


class LocusAlignment(NamedTuple):
    """A locus, its coding sequence and its evidence alignment"""
    locus_id: str
    coding_sequence: str
    alignment: EvidenceAlignment


def _coding_aligner() -> PairwiseAligner:
    aligner = PairwiseAligner()
    aligner.mode = 'global'
    aligner.match_score = 1
    aligner.mismatch_score = -1
    aligner.open_gap_score = -5
    aligner.extend_gap_score = -1
    return aligner


class InformativeSites:
    """Finds the informative columns of two loci's evidence alignments"""

    def __init__(self, first: LocusAlignment, second: LocusAlignment):
        for side in (first, second):
            if not side.coding_sequence:
                raise ValidationError(f"Locus {side.locus_id} has no coding sequence")
            if EXON_ROW not in side.alignment:
                raise ValidationError(f"Alignment for {side.locus_id} has no exon row")

        self.logger = logging.getLogger("genebuild.sequence.informative_sites")
        self.first = first
        self.second = second
        self.aligner = _coding_aligner()
        self._sites: Optional[List[Tuple[int, int]]] = None

    def coding_sites(self) -> List[Tuple[int, int]]:
        """Pairs of 0-based coding positions (first, second) that differ"""
        if self._sites is not None:
            return self._sites

        seq1 = self.first.coding_sequence.upper()
        seq2 = self.second.coding_sequence.upper()
        alignment = self.aligner.align(seq1, seq2)[0]

        sites = []
        for (start1, end1), (start2, _) in zip(*alignment.aligned):
            for offset in range(end1 - start1):
                i, j = start1 + offset, start2 + offset
                if seq1[i] != seq2[j]:
                    sites.append((i, j))

        self.logger.debug(f"{len(sites)} informative sites between "
                          f"{self.first.locus_id} and {self.second.locus_id}")
        self._sites = sites
        return sites

    def informative_sites(self) -> Dict[str, EvidenceAlignment]:
        """Evidence alignments restricted to informative columns, per locus

        A locus whose coding sequence cannot be located in its exon row is
        left out. No informative sites gives an empty mapping.
        """
        sites = self.coding_sites()
        if not sites:
            return {}

        result = {}
        for side, positions in ((self.first, [i for i, _ in sites]),
                                (self.second, [j for _, j in sites])):
            columns = self._columns_for(side, positions)
            if columns is None:
                continue
            result[side.locus_id] = side.alignment.restrict(columns, exclude=(GENOMIC_ROW,))
        return result

    def _columns_for(self, side: LocusAlignment, positions: List[int]) -> Optional[List[int]]:
        """Map coding positions onto alignment columns through the exon row"""
        exon_row = side.alignment[EXON_ROW]
        base_columns = [c for c, base in enumerate(exon_row) if base != GAP]
        spliced = ''.join(exon_row[c] for c in base_columns).upper()

        offset = spliced.find(side.coding_sequence.upper())
        if offset < 0:
            self.logger.warning(f"Coding sequence of {side.locus_id} not found in its exon sequence")
            return None
        return [base_columns[offset + p] for p in positions]
