#!/usr/bin/env python3
"""
Strand sanity check for DNA-to-DNA alignments.

cDNA alignments do not say which genomic strand the transcript is on. The
dinucleotides flanking each intron are compared against canonical splice
sites; when more introns look like reversed splice sites than canonical
ones, the alignment is moved to the opposite strand.
"""
import logging
from enum import Enum
from typing import Optional, Tuple

from genebuild.exceptions import SequenceRetrievalError
from genebuild.models.alignment import AlignmentRecord
from genebuild.utils.sequence import reverse_complement


class SiteClass(Enum):
    CORRECT = "correct"
    WRONG = "wrong"
    OTHER = "other"


# Donor/acceptor pairs on the transcript strand
CANONICAL_SITE_PAIRS = {('GT', 'AG'), ('AT', 'AC'), ('GC', 'AG')}

# The canonical pairs as they read from the opposite strand
REVERSED_SITE_PAIRS = {('CT', 'AC'), ('GT', 'AT'), ('CT', 'GC')}


def classify_site_pair(upstream: str, downstream: str) -> SiteClass:
    """Classify an intron by its upstream and downstream dinucleotides"""
    pair = (upstream.upper(), downstream.upper())
    if pair in CANONICAL_SITE_PAIRS:
        return SiteClass.CORRECT
    if pair in REVERSED_SITE_PAIRS:
        return SiteClass.WRONG
    return SiteClass.OTHER


class SpliceSiteChecker:
    """Checks and corrects the strand of multi-block alignments"""

    def __init__(self, slicer):
        """Initialize checker

        Args:
            slicer: Object providing sequence_slice(region, start, end)
        """
        self.logger = logging.getLogger("genebuild.pipelines.pseudogene.strand")
        self.slicer = slicer

    def classify_site_pair(self, upstream: str, downstream: str) -> SiteClass:
        return classify_site_pair(upstream, downstream)

    def _site(self, region: str, start: int, end: int, strand: int) -> Optional[str]:
        """Two-base site on the given strand, None if it cannot be read"""
        try:
            seq = self.slicer.sequence_slice(region, start, end)
        except SequenceRetrievalError as e:
            self.logger.warning(f"Could not read splice site {region}:{start}-{end}: {str(e)}")
            return None

        seq = (seq or "").strip().upper()
        if len(seq) != 2:
            self.logger.warning(f"Asked for splice site {region}:{start}-{end} and got '{seq}'")
            return None
        return seq if strand == 1 else reverse_complement(seq)

    def tally(self, record: AlignmentRecord) -> Tuple[int, int, int]:
        """Count (correct, wrong, other) introns of an alignment"""
        strand = record.strand
        blocks = sorted(record.blocks, key=lambda block: block.start, reverse=(strand == -1))
        region = record.seq_region_name

        correct = wrong = other = 0
        for upstream, downstream in zip(blocks, blocks[1:]):
            if strand == 1:
                up_site = self._site(region, upstream.end + 1, upstream.end + 2, strand)
                down_site = self._site(region, downstream.start - 2, downstream.start - 1, strand)
            else:
                up_site = self._site(region, upstream.start - 2, upstream.start - 1, strand)
                down_site = self._site(region, downstream.end + 1, downstream.end + 2, strand)

            if up_site is None or down_site is None:
                self.logger.warning(f"Problems retrieving splice sites for {record.source_id}, "
                                    f"skipping intron")
                continue

            site_class = classify_site_pair(up_site, down_site)
            if site_class is SiteClass.CORRECT:
                correct += 1
            elif site_class is SiteClass.WRONG:
                wrong += 1
            else:
                other += 1

        introns = len(blocks) - 1
        if introns != correct + wrong + other:
            self.logger.warning(f"Intron tally mismatch for {record.source_id}: introns: {introns}, "
                                f"correct: {correct}, wrong: {wrong}, other: {other}")
        return correct, wrong, other

    def check_strand(self, record: AlignmentRecord) -> AlignmentRecord:
        """Return the record, moved to the other strand if its introns say so

        Single-block records are returned unchanged.
        """
        if record.block_count < 2:
            return record

        correct, wrong, _ = self.tally(record)
        if wrong > correct:
            self.logger.info(f"Changing strand of {record.source_id} at {record.extent} "
                             f"(correct: {correct}, wrong: {wrong})")
            return self.change_strand(record)
        return record

    def change_strand(self, record: AlignmentRecord) -> AlignmentRecord:
        """Flip every block and supporting feature to the opposite strand"""
        return record.with_strand(-record.strand)
