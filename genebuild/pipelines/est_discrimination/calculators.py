#!/usr/bin/env python3
"""
Distance calculators for EST discrimination.

A calculator fills a DistanceTable with locus-locus and locus-evidence
distances for the loci that share evidence. Two flavours exist:

- informative sites (default): distances are computed only over the
  columns where the two loci's coding sequences differ
- nucleotide: distances over the whole evidence alignment, with
  locus-locus distances from a codon-based alignment
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from genebuild.exceptions import ValidationError
from genebuild.models.distance import DistanceClass, DistanceTable, PairKey
from genebuild.models.gene import EvidenceItem, Locus, Transcript
from genebuild.sequence.alignment import AlignmentBuilder, EXON_ROW
from genebuild.sequence.codon_alignment import codon_align
from genebuild.sequence.distance import SequenceDistanceEngine
from genebuild.sequence.informative_sites import InformativeSites, LocusAlignment

# locus id -> evidence name -> evidence item
SharedEvidence = Mapping[str, Mapping[str, EvidenceItem]]


def locus_pairs(shared: SharedEvidence) -> List[Tuple[str, str]]:
    """Pairs of loci sharing at least one evidence item, in discovery order"""
    loci_by_evidence: Dict[str, List[str]] = {}
    for locus_id, items in shared.items():
        for name in items:
            loci_by_evidence.setdefault(name, []).append(locus_id)

    seen = set()
    pairs = []
    for locus_id, items in shared.items():
        for name in items:
            for other in loci_by_evidence[name]:
                if other == locus_id:
                    continue
                key = PairKey.of(locus_id, other)
                if key not in seen:
                    seen.add(key)
                    pairs.append((locus_id, other))
    return pairs


class DistanceCalculator(ABC):
    """Fills a distance table for loci sharing evidence"""

    distance_class: DistanceClass = DistanceClass.INFORMATIVE_SITES

    def __init__(self, builder: AlignmentBuilder, engine: Optional[SequenceDistanceEngine] = None):
        if builder is None:
            raise ValidationError("Distance calculator needs an alignment builder")
        self.logger = logging.getLogger("genebuild.pipelines.est_discrimination.calculators")
        self.builder = builder
        self.engine = engine or SequenceDistanceEngine()

    @abstractmethod
    def calculate(self, loci: Mapping[str, Locus], shared: SharedEvidence,
                  table: DistanceTable) -> None:
        """Store distances for every locus pair and shared evidence item"""
        pass

    def _representative(self, locus: Locus) -> Optional[Transcript]:
        return locus.longest_translatable_transcript()

    def _alignment(self, locus: Locus, transcript: Transcript, items: Iterable[EvidenceItem]):
        return self.builder.build(locus.locus_id, transcript, locus.seq_region_name, list(items))

    def _store_against_exon_row(self, locus_id: str, rows: Mapping[str, str],
                                evidence_names: Iterable[str], table: DistanceTable) -> None:
        matrix = self.engine.compute_distances(rows)
        for name in evidence_names:
            if name not in matrix:
                self.logger.warning(f"No alignment row for {name} against {locus_id}")
                continue
            distance = matrix.get(EXON_ROW, name)
            if distance is None:
                self.logger.warning(f"No usable distance between {locus_id} and {name}")
                continue
            table.store(locus_id, name, distance, self.distance_class)


class InformativeSiteDistanceCalculator(DistanceCalculator):
    """Locus-evidence distances over informative sites only

    The distance between two loci is fixed at 1: over their informative
    sites they differ everywhere by construction. Each locus's evidence
    distances are computed once, from the first pair it takes part in. A
    locus with no informative sites against its partner gets distance 0 to
    all of its evidence.
    """

    distance_class = DistanceClass.INFORMATIVE_SITES

    def calculate(self, loci: Mapping[str, Locus], shared: SharedEvidence,
                  table: DistanceTable) -> None:
        seen_loci = set()

        for first_id, second_id in locus_pairs(shared):
            sites = self._informative_alignments(loci[first_id], loci[second_id], shared)

            table.store(first_id, second_id, 1.0, self.distance_class)

            for locus_id in (first_id, second_id):
                if locus_id in seen_loci:
                    continue
                seen_loci.add(locus_id)

                if locus_id not in sites:
                    self.logger.debug(f"No informative sites for {locus_id}; "
                                      f"evidence distances set to 0")
                    for name in shared[locus_id]:
                        table.store(locus_id, name, 0.0, self.distance_class)
                    continue

                restricted = sites[locus_id]
                self._store_against_exon_row(locus_id, restricted.rows,
                                             restricted.evidence_names, table)

    def _informative_alignments(self, first: Locus, second: Locus, shared: SharedEvidence):
        sides = []
        for locus in (first, second):
            transcript = self._representative(locus)
            if transcript is None:
                return {}
            alignment = self._alignment(locus, transcript, shared[locus.locus_id].values())
            sides.append(LocusAlignment(locus.locus_id, transcript.coding_sequence, alignment))
        return InformativeSites(sides[0], sides[1]).informative_sites()


class NucleotideDistanceCalculator(DistanceCalculator):
    """Distances over whole evidence alignments

    Locus-evidence distances compare the exon row with each evidence row.
    Locus-locus distances compare codon-aligned coding sequences.
    """

    distance_class = DistanceClass.NUCLEOTIDE

    def calculate(self, loci: Mapping[str, Locus], shared: SharedEvidence,
                  table: DistanceTable) -> None:
        for locus_id, items in shared.items():
            if not items:
                continue
            locus = loci[locus_id]
            transcript = self._representative(locus) or (locus.transcripts[0] if locus.transcripts else None)
            if transcript is None:
                self.logger.warning(f"Locus {locus_id} has no transcript to align evidence against")
                continue
            alignment = self._alignment(locus, transcript, items.values())
            self._store_against_exon_row(locus_id, alignment.rows, alignment.evidence_names, table)

        for first_id, second_id in locus_pairs(shared):
            first = self._representative(loci[first_id])
            second = self._representative(loci[second_id])
            if first is None or second is None:
                continue
            aligned1, aligned2 = codon_align(first.coding_sequence, second.coding_sequence)
            distance = self.engine.distance(aligned1, aligned2)
            if distance is None:
                self.logger.warning(f"Empty codon alignment between {first_id} and {second_id}")
                continue
            table.store(first_id, second_id, distance, self.distance_class)
