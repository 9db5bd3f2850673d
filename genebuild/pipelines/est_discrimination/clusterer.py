#!/usr/bin/env python3
"""
EST discrimination: assign ESTs shared between loci to the locus they most
likely came from.

A run moves through three stages, each cached so that repeated calls do
not redo work:

1. shared evidence discovery: ESTs overlapping the exons of each locus
   above a coverage cutoff; ESTs seen at only one locus are single matches
2. distance computation: the configured calculator fills the distance table
3. clustering: each shared EST goes to the locus (or loci) closest to it,
   with distances within the twilight tolerance treated as equal
"""
import logging
import math
from collections import Counter, OrderedDict
from itertools import combinations
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from genebuild.exceptions import ResolutionError, ValidationError
from genebuild.models.distance import DistanceTable
from genebuild.models.gene import EvidenceItem, Locus
from genebuild.models.results import ClusteringStage, MatchType

DEFAULT_COVERAGE_CUTOFF = 0.8
DEFAULT_DISTANCE_TWILIGHT = 0.02
TWILIGHT_TOLERANCE = 1e-9


def normalize_coverage_cutoff(value: Optional[float]) -> float:
    """Coverage cutoff as a fraction; values above 1 are percentages"""
    if not value:
        return DEFAULT_COVERAGE_CUTOFF
    value = float(value)
    return value / 100 if value > 1 else value


def within_twilight(first: float, second: float, twilight: float) -> bool:
    """True when two distances differ by no more than the twilight

    Distances are rounded to two decimals, so a difference of exactly the
    twilight (0.32 - 0.30) must not be lost to float error.
    """
    return abs(first - second) <= twilight + TWILIGHT_TOLERANCE


class EvidenceClusterer:
    """Clusters shared EST evidence with its most likely loci"""

    def __init__(self, loci: Iterable[Locus], evidence_source, distance_calculator,
                 coverage_cutoff: Optional[float] = DEFAULT_COVERAGE_CUTOFF,
                 distance_twilight: Optional[float] = DEFAULT_DISTANCE_TWILIGHT):
        """Initialize clusterer

        Args:
            loci: Loci to analyse
            evidence_source: Object providing overlapping_evidence(locus)
            distance_calculator: Calculator filling the distance table
            coverage_cutoff: Minimum fraction of an EST inside a locus's exons
            distance_twilight: Distance differences treated as no difference

        Raises:
            ValidationError: If loci or a collaborator is missing
        """
        self.logger = logging.getLogger("genebuild.pipelines.est_discrimination")

        loci = list(loci or [])
        if not loci:
            raise ValidationError("No loci to analyse")
        for locus in loci:
            if not isinstance(locus, Locus):
                raise ValidationError(f"Expected a Locus, got {type(locus).__name__}")
        if evidence_source is None:
            raise ValidationError("Clusterer needs access to the evidence database")
        if distance_calculator is None:
            raise ValidationError("Clusterer needs a distance calculator")

        self.loci: Dict[str, Locus] = OrderedDict()
        for locus in loci:
            if locus.locus_id in self.loci:
                raise ValidationError(f"Duplicate locus id: {locus.locus_id}")
            self.loci[locus.locus_id] = locus

        self.evidence_source = evidence_source
        self.distance_calculator = distance_calculator
        self.coverage_cutoff = normalize_coverage_cutoff(coverage_cutoff)
        self.distance_twilight = (DEFAULT_DISTANCE_TWILIGHT if distance_twilight is None
                                  else float(distance_twilight))

        self.stage = ClusteringStage.UNINITIALIZED
        self.distances = DistanceTable()
        self._shared: Dict[str, Dict[str, EvidenceItem]] = OrderedDict()
        self._loci_by_evidence: Dict[str, List[str]] = OrderedDict()
        self._assignments: Dict[str, List[str]] = OrderedDict()
        self._matches: Dict[MatchType, Dict[str, List[str]]] = {
            match_type: OrderedDict((locus_id, []) for locus_id in self.loci)
            for match_type in MatchType
        }

    # ------------------------------------------------------------------
    # Stage 1: shared evidence
    # ------------------------------------------------------------------

    def find_overlapping_evidence(self, locus: Locus) -> List[EvidenceItem]:
        """Evidence covering the locus's exons at or above the cutoff

        Raises:
            ValidationError: If an evidence item has zero length
        """
        overlapping = []
        seen = set()
        for item in self.evidence_source.overlapping_evidence(locus):
            coverage = item.coverage_against(locus)
            if coverage >= self.coverage_cutoff and item.name not in seen:
                overlapping.append(item)
            seen.add(item.name)

        self.logger.info(f"Have {len(overlapping)} ESTs that map well to {locus.locus_id}")
        return overlapping

    def discover_shared_evidence(self) -> Dict[str, Dict[str, EvidenceItem]]:
        """Evidence shared by two or more loci, per locus

        Evidence mapping to a single locus is recorded as a single match and
        left out of the result.
        """
        if self.stage.reached(ClusteringStage.SHARED_EVIDENCE_DISCOVERED):
            return self._shared

        counts: Counter = Counter()
        per_locus: Dict[str, Dict[str, EvidenceItem]] = OrderedDict()
        for locus_id, locus in self.loci.items():
            items = self.find_overlapping_evidence(locus)
            per_locus[locus_id] = OrderedDict((item.name, item) for item in items)
            counts.update(per_locus[locus_id].keys())

        for name, count in counts.items():
            if count != 1:
                continue
            for locus_id, items in per_locus.items():
                if name in items:
                    self._record_match(MatchType.SINGLE, locus_id, name)
                    del items[name]

        for locus_id, items in per_locus.items():
            for name in items:
                self._loci_by_evidence.setdefault(name, []).append(locus_id)

        self._shared = per_locus
        self.stage = ClusteringStage.SHARED_EVIDENCE_DISCOVERED
        self.logger.info(f"{len(self._loci_by_evidence)} ESTs shared between "
                         f"{len(self.loci)} loci")
        return self._shared

    def shared_evidence_for(self, locus_id: str) -> List[str]:
        self.discover_shared_evidence()
        return list(self._shared.get(locus_id, {}))

    def loci_for_evidence(self, name: str) -> List[str]:
        self.discover_shared_evidence()
        return list(self._loci_by_evidence.get(name, []))

    def summarize_shared_evidence(self) -> Dict[str, int]:
        """Number of loci each shared EST maps to"""
        self.discover_shared_evidence()
        summary = OrderedDict((name, len(loci)) for name, loci in self._loci_by_evidence.items())
        for name, count in summary.items():
            self.logger.info(f"{name}\tmapped to {count} genes")
        self.logger.info(f"Had {len(summary)} ESTs that mapped to more than one gene")
        return summary

    # ------------------------------------------------------------------
    # Stage 2: distances
    # ------------------------------------------------------------------

    def compute_distances(self) -> DistanceTable:
        if self.stage.reached(ClusteringStage.DISTANCES_COMPUTED):
            return self.distances

        shared = self.discover_shared_evidence()
        self.distance_calculator.calculate(self.loci, shared, self.distances)
        self.stage = ClusteringStage.DISTANCES_COMPUTED
        self.logger.debug(f"Distance table holds {len(self.distances)} entries")
        return self.distances

    def pairwise_distance(self, first: str, second: str) -> Optional[float]:
        """Stored distance between two identifiers, None if never computed"""
        return self.distances.get(first, second, self.distance_calculator.distance_class)

    def _distance_or_zero(self, locus_id: str, name: str) -> float:
        distance = self.pairwise_distance(locus_id, name)
        if distance is None:
            self.logger.warning(f"No distance between {locus_id} and {name}; using 0")
            return 0.0
        return distance

    # ------------------------------------------------------------------
    # Stage 3: clustering
    # ------------------------------------------------------------------

    def cluster(self) -> Dict[str, List[str]]:
        """Assign every shared EST to its closest loci

        Returns:
            EST name to the loci it was assigned to

        Raises:
            ResolutionError: If an EST cannot be assigned to any locus
        """
        if self.stage.reached(ClusteringStage.CLUSTERED):
            return self._assignments

        self.compute_distances()
        twilight = self.distance_twilight

        for name, locus_ids in self._loci_by_evidence.items():
            possible = set()
            excluded = set()

            for first, second in combinations(locus_ids, 2):
                first_dist = self._distance_or_zero(first, name)
                second_dist = self._distance_or_zero(second, name)
                if math.isnan(first_dist) or math.isnan(second_dist):
                    continue

                if within_twilight(first_dist, second_dist, twilight):
                    possible.update((first, second))
                elif first_dist > second_dist:
                    possible.add(second)
                    excluded.add(first)
                else:
                    possible.add(first)
                    excluded.add(second)

            closest = [locus_id for locus_id in locus_ids
                       if locus_id in possible and locus_id not in excluded]
            if not closest:
                raise ResolutionError(f"Failed to find the most closely related locus for {name}",
                                      {"loci": locus_ids})

            self._assignments[name] = closest

            match_type = MatchType.MULTIPLE if len(closest) > 1 else MatchType.SINGLE
            for locus_id in closest:
                self._record_match(match_type, locus_id, name)
            for locus_id in locus_ids:
                if locus_id not in closest:
                    self._record_match(MatchType.INCORRECT, locus_id, name)

        self.stage = ClusteringStage.CLUSTERED
        self.logger.info(f"Clustered {len(self._assignments)} shared ESTs")
        return self._assignments

    def run(self) -> Dict[str, List[str]]:
        """Discover, compute distances and cluster; returns evidence_vs_locus()"""
        self.discover_shared_evidence()
        self.compute_distances()
        self.cluster()
        return self.evidence_vs_locus()

    def evidence_vs_locus(self) -> Dict[str, List[str]]:
        return {name: list(loci) for name, loci in self._assignments.items()}

    # ------------------------------------------------------------------
    # Match queries
    # ------------------------------------------------------------------

    def _record_match(self, match_type: MatchType, locus_id: str, name: str) -> None:
        matches = self._matches[match_type][locus_id]
        if name not in matches:
            matches.append(name)

    def _matched(self, match_type: MatchType, locus_id: str) -> List[str]:
        if locus_id not in self._matches[match_type]:
            self.logger.warning(f"Unknown locus id {locus_id}; no data generated for it")
            return []
        return list(self._matches[match_type][locus_id])

    def single_match_evidence(self, locus_id: str) -> List[str]:
        return self._matched(MatchType.SINGLE, locus_id)

    def multiple_match_evidence(self, locus_id: str) -> List[str]:
        return self._matched(MatchType.MULTIPLE, locus_id)

    def incorrect_match_evidence(self, locus_id: str) -> List[str]:
        return self._matched(MatchType.INCORRECT, locus_id)

    def to_records(self) -> List[Dict[str, Any]]:
        records = []
        for match_type, by_locus in self._matches.items():
            for locus_id, names in by_locus.items():
                for name in names:
                    records.append({
                        'locus_id': locus_id,
                        'evidence': name,
                        'match_type': match_type.value,
                        'distance': self.pairwise_distance(locus_id, name),
                    })
        return records

    def to_dataframe(self) -> pd.DataFrame:
        """One row per (locus, evidence) match with its type and distance"""
        columns = ['locus_id', 'evidence', 'match_type', 'distance']
        df = pd.DataFrame(self.to_records(), columns=columns)
        if not df.empty:
            df = df.sort_values(['locus_id', 'match_type', 'evidence']).reset_index(drop=True)
        return df
