#!/usr/bin/env python3
"""
Processed pseudogene classifier.

All genomic alignments of one cDNA are ranked by coverage, number of blocks
and percent identity. When the best alignment is spliced, lower-ranked
unspliced alignments that still score well are potential processed
pseudogenes: intron-less copies of a gene spliced elsewhere in the genome.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Any, Iterable, List, Optional

from genebuild.models.alignment import AlignmentRecord, DEFAULT_MAX_FRAMESHIFT_INTRON
from genebuild.models.gene import CandidatePseudogene
from genebuild.models.results import RankedAlignment
from genebuild.utils.sequence import parse_slice_name

BEST_MATCH = 'best_match'
POTENTIAL_PSEUDOGENE = 'potential_processed_pseudogene'

# Relaxed gate: a little more coverage buys a little less identity
RELAXED_COVERAGE_FACTOR = 1.05
RELAXED_PERCENT_ID_FACTOR = 0.97

# Permissive mode keeps anything within 2% of the best score
PERMISSIVE_SCORE_FACTOR = 0.98


@dataclass
class ClassifierOptions:
    """Thresholds and switches for the pseudogene classifier"""
    min_coverage: float = 90.0
    min_percent_id: float = 97.0
    best_in_genome: bool = True
    max_frameshift_intron: int = DEFAULT_MAX_FRAMESHIFT_INTRON
    remove_overlaps: bool = True
    logic_name: str = 'pseudogene'

    def validate(self) -> None:
        errors = []

        if not 0.0 <= self.min_coverage <= 100.0:
            errors.append("min_coverage must be between 0 and 100")

        if not 0.0 <= self.min_percent_id <= 100.0:
            errors.append("min_percent_id must be between 0 and 100")

        if self.max_frameshift_intron < 0:
            errors.append("max_frameshift_intron must not be negative")

        if errors:
            raise ValueError(f"Invalid classifier options: {'; '.join(errors)}")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ClassifierOptions':
        """Create options from the 'pseudogene' configuration section"""
        options = cls(
            min_coverage=float(config.get('min_coverage', cls.min_coverage)),
            min_percent_id=float(config.get('min_percent_id', cls.min_percent_id)),
            best_in_genome=bool(config.get('best_in_genome', cls.best_in_genome)),
            max_frameshift_intron=int(config.get('max_frameshift_intron',
                                                 cls.max_frameshift_intron)),
            remove_overlaps=bool(config.get('remove_overlaps', cls.remove_overlaps)),
            logic_name=config.get('logic_name', cls.logic_name),
        )
        options.validate()
        return options

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min_coverage': self.min_coverage,
            'min_percent_id': self.min_percent_id,
            'best_in_genome': self.best_in_genome,
            'max_frameshift_intron': self.max_frameshift_intron,
            'remove_overlaps': self.remove_overlaps,
            'logic_name': self.logic_name,
        }


class PseudogeneClassifier:
    """Flags potential processed pseudogenes among cDNA alignments"""

    def __init__(self, options: Optional[ClassifierOptions] = None, splice_checker=None):
        """Initialize classifier

        Args:
            options: Classifier thresholds (defaults if omitted)
            splice_checker: Optional SpliceSiteChecker applied to accepted candidates
        """
        self.logger = logging.getLogger("genebuild.pipelines.pseudogene.classifier")
        self.options = options or ClassifierOptions()
        self.options.validate()
        self.splice_checker = splice_checker

    def group_by_source(self, records: Iterable[AlignmentRecord]) -> Dict[str, List[AlignmentRecord]]:
        """Collect alignments by source sequence identifier (first-seen order)"""
        groups: Dict[str, List[AlignmentRecord]] = OrderedDict()
        for record in records:
            groups.setdefault(record.source_id, []).append(record)
        return groups

    def rank(self, records: Iterable[AlignmentRecord]) -> List[AlignmentRecord]:
        """Sort by coverage, then block count, then percent identity (all descending)"""
        return sorted(records, key=lambda r: (-r.coverage, -r.block_count, -r.percent_id))

    def _passes_gate(self, score: float, percent_id: float, max_score: float) -> bool:
        opts = self.options
        if opts.best_in_genome:
            in_range = score == max_score
        else:
            in_range = score >= PERMISSIVE_SCORE_FACTOR * max_score

        strict = score >= opts.min_coverage and percent_id >= opts.min_percent_id
        relaxed = (score >= RELAXED_COVERAGE_FACTOR * opts.min_coverage and
                   percent_id >= RELAXED_PERCENT_ID_FACTOR * opts.min_percent_id)
        return in_range and (strict or relaxed)

    def classify_group(self, records: Iterable[AlignmentRecord]) -> List[RankedAlignment]:
        """Rank one source's alignments and decide which are candidates

        Returns:
            One verdict per record, in rank order
        """
        ranked = self.rank(records)
        if not ranked:
            return []

        max_fi = self.options.max_frameshift_intron
        max_score = ranked[0].coverage
        best_is_spliced = ranked[0].is_spliced(max_fi)

        self.logger.info(f"Matches for {ranked[0].source_id}: {len(ranked)}")

        verdicts = []
        for rank, record in enumerate(ranked, start=1):
            candidate = rank > 1 and best_is_spliced and not record.is_spliced(max_fi)

            if rank == 1:
                label = BEST_MATCH
            elif candidate:
                label = POTENTIAL_PSEUDOGENE
            else:
                label = str(rank)

            accepted = candidate and self._passes_gate(record.coverage, record.percent_id, max_score)

            self.logger.info(
                f"match:{record.source_id} coverage:{record.coverage} perc_id:{record.percent_id} "
                f"extent:{self._extent(record)} strand:{record.strand} comment:{label} "
                f"accept:{'YES' if accepted else 'NO'}"
            )
            verdicts.append(RankedAlignment(record=record, rank=rank, label=label, accepted=accepted))

        return verdicts

    @staticmethod
    def _extent(record: AlignmentRecord) -> str:
        parsed = parse_slice_name(record.seq_region_name)
        region = parsed[0] if parsed else record.seq_region_name
        return f"{region}.{record.start}-{record.end}"

    def filter_candidates(self, records: Iterable[AlignmentRecord]) -> List[RankedAlignment]:
        """Accepted verdicts over all source groups"""
        accepted = []
        for source_id, group in self.group_by_source(records).items():
            group_accepted = [v for v in self.classify_group(group) if v.accepted]
            if group_accepted:
                self.logger.debug(f"{source_id}: {len(group_accepted)} potential pseudogenes")
            accepted.extend(group_accepted)
        return accepted

    def make_candidates(self, verdicts: Iterable[RankedAlignment]) -> List[CandidatePseudogene]:
        """Turn accepted verdicts into candidates, checking their strand"""
        candidates = []
        for verdict in verdicts:
            record = verdict.record
            corrected = False
            if self.splice_checker is not None:
                checked = self.splice_checker.check_strand(record)
                corrected = checked.strand != record.strand
                record = checked

            candidates.append(CandidatePseudogene(
                record=record,
                rank=verdict.rank,
                label=verdict.label,
                strand_corrected=corrected,
                logic_name=self.options.logic_name,
            ))
        return candidates

    def remove_overlapping(self, candidates: Iterable[CandidatePseudogene]) -> List[CandidatePseudogene]:
        """Among overlapping candidates keep the best by coverage, then percent id"""
        ordered = sorted(candidates, key=lambda c: (-c.coverage, -c.percent_id))
        kept: List[CandidatePseudogene] = []
        for candidate in ordered:
            clash = next((k for k in kept if k.record.overlaps(candidate.record)), None)
            if clash is not None:
                self.logger.debug(f"Dropping {candidate.source_id} at {candidate.record.extent}: "
                                  f"overlaps {clash.source_id} at {clash.record.extent}")
                continue
            kept.append(candidate)
        return kept

    def process(self, records: Iterable[AlignmentRecord]) -> List[CandidatePseudogene]:
        """Full classification: filter, build candidates, resolve overlaps"""
        verdicts = self.filter_candidates(records)
        candidates = self.make_candidates(verdicts)
        if self.options.remove_overlaps:
            candidates = self.remove_overlapping(candidates)
        self.logger.info(f"Found {len(candidates)} potential processed pseudogenes")
        return candidates
