#!/usr/bin/env python3
"""
Pseudogene annotation job.

Aligns a set of cDNA sequences against every chromosome file, classifies
the alignments and stores the potential processed pseudogenes.
"""
import os
from typing import Any, Dict, List, Optional, Sequence

from genebuild.exceptions import GenebuildError, JobError, PipelineError
from genebuild.jobs.base import AnnotationJob
from genebuild.models.gene import CandidatePseudogene
from genebuild.pipelines.pseudogene.classifier import PseudogeneClassifier


class PseudogeneJob(AnnotationJob):
    """Finds processed pseudogenes for one batch of query sequences"""

    analysis_type = "pseudogene"

    def __init__(self, input_id: str, genome, alignment_source, query_sequences: Sequence[Any],
                 genomic_dir: str, classifier: PseudogeneClassifier, writer=None,
                 align_options: Optional[Dict[str, Any]] = None):
        """Initialize job

        Args:
            input_id: Identifier of the query batch
            genome: Object providing chromosome_names()
            alignment_source: Object providing align(queries, target, options)
            query_sequences: cDNA sequences to align
            genomic_dir: Directory holding one <chromosome>.fa file per chromosome
            classifier: Pseudogene classifier
            writer: Object providing store_candidate(candidate)
            align_options: Options passed through to the alignment source
        """
        super().__init__(input_id)
        if alignment_source is None:
            raise JobError("Pseudogene job needs an alignment source")

        self.genome = genome
        self.alignment_source = alignment_source
        self.query_sequences = list(query_sequences or [])
        self.genomic_dir = genomic_dir
        self.classifier = classifier
        self.writer = writer
        self.align_options = align_options or {}
        self.targets: List[str] = []

    def fetch_input(self) -> None:
        """Collect the per-chromosome target files"""
        self.targets = []
        for name in self.genome.chromosome_names():
            path = os.path.join(self.genomic_dir, f"{name}.fa")
            if not os.path.exists(path) or os.path.getsize(path) == 0:
                self.logger.warning(f"No usable sequence file for chromosome {name}: {path}")
                continue
            self.targets.append(path)

        self.logger.info(f"Collected {len(self.targets)} target files for {self.input_id}")
        self._input_fetched = True

    def run(self) -> None:
        if not self._input_fetched:
            raise JobError("fetch_input must be called before run", {"input_id": self.input_id})
        if not self.targets:
            raise PipelineError("No target sequence files to align against",
                                {"genomic_dir": self.genomic_dir})

        records = []
        for target in self.targets:
            results = self.alignment_source.align(self.query_sequences, target, self.align_options)
            self.logger.debug(f"{len(results)} alignments against {target}")
            records.extend(results)

        candidates = self.classifier.process(records)
        self._output = [candidate.to_chromosome_coordinates() for candidate in candidates]

    def write_output(self) -> int:
        if self.writer is None:
            raise JobError("No writer configured for pseudogene output")

        stored = 0
        for candidate in self._output:
            try:
                self.writer.store_candidate(candidate)
                stored += 1
            except GenebuildError as e:
                self.logger.warning(f"Unable to store pseudogene {candidate.source_id} "
                                    f"at {candidate.record.extent}: {str(e)}")

        self.logger.info(f"Stored {stored} of {len(self._output)} pseudogenes")
        return stored

    @property
    def candidates(self) -> List[CandidatePseudogene]:
        return self.output
