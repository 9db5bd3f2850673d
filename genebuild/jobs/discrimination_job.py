#!/usr/bin/env python3
"""
EST discrimination job: clusters ESTs shared between a set of loci and
writes a tab-separated report of the matches.
"""
import os
from typing import Optional, Sequence

from genebuild.exceptions import JobError
from genebuild.jobs.base import AnnotationJob
from genebuild.pipelines.est_discrimination.clusterer import EvidenceClusterer


class EvidenceDiscriminationJob(AnnotationJob):
    """Runs the evidence clusterer over one set of loci"""

    analysis_type = "est_discrimination"

    def __init__(self, input_id: str, locus_ids: Sequence[str], locus_source, evidence_source,
                 distance_calculator, output_path: str,
                 coverage_cutoff: Optional[float] = None,
                 distance_twilight: Optional[float] = None):
        super().__init__(input_id)
        self.locus_ids = list(locus_ids or [])
        self.locus_source = locus_source
        self.evidence_source = evidence_source
        self.distance_calculator = distance_calculator
        self.output_path = output_path
        self.coverage_cutoff = coverage_cutoff
        self.distance_twilight = distance_twilight
        self.loci = []
        self.clusterer: Optional[EvidenceClusterer] = None

    def fetch_input(self) -> None:
        if not self.locus_ids:
            raise JobError("No locus ids given", {"input_id": self.input_id})

        self.loci = self.locus_source.fetch_loci(self.locus_ids)
        if not self.loci:
            raise JobError(f"None of the {len(self.locus_ids)} loci could be fetched",
                           {"input_id": self.input_id})

        missing = set(self.locus_ids) - {locus.locus_id for locus in self.loci}
        if missing:
            self.logger.warning(f"Loci not found: {', '.join(sorted(missing))}")
        self._input_fetched = True

    def run(self) -> None:
        if not self._input_fetched:
            raise JobError("fetch_input must be called before run", {"input_id": self.input_id})

        self.clusterer = EvidenceClusterer(
            self.loci, self.evidence_source, self.distance_calculator,
            coverage_cutoff=self.coverage_cutoff,
            distance_twilight=self.distance_twilight,
        )
        self.clusterer.summarize_shared_evidence()
        self.clusterer.run()
        self._output = self.clusterer.to_records()

    def write_output(self) -> int:
        if self.clusterer is None:
            raise JobError("Nothing to write; run the job first", {"input_id": self.input_id})

        df = self.clusterer.to_dataframe()
        output_dir = os.path.dirname(self.output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        df.to_csv(self.output_path, sep='\t', index=False)

        self.logger.info(f"Wrote {len(df)} matches to {self.output_path}")
        return len(df)
