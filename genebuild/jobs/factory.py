#!/usr/bin/env python3
"""
Annotation job factory: builds a job and its collaborators from
configuration. Any collaborator passed in by the caller is used as is.
"""
import os
import logging
from typing import Any, Dict

from genebuild.core.context import ApplicationContext
from genebuild.db.repositories.genome_repository import GenomeRepository
from genebuild.exceptions import ConfigurationError, JobError
from genebuild.jobs.base import AnnotationJob
from genebuild.jobs.discrimination_job import EvidenceDiscriminationJob
from genebuild.jobs.pseudogene_job import PseudogeneJob
from genebuild.pipelines.est_discrimination.calculators import (
    InformativeSiteDistanceCalculator, NucleotideDistanceCalculator
)
from genebuild.pipelines.pseudogene.classifier import ClassifierOptions, PseudogeneClassifier
from genebuild.pipelines.pseudogene.strand import SpliceSiteChecker
from genebuild.sequence.alignment import AlignmentBuilder
from genebuild.sequence.fetchers import (
    DEFAULT_ENA_URL, ChromosomeFileSlicer, EnaSequenceFetcher, IndexedFastaFetcher
)

logger = logging.getLogger("genebuild.jobs.factory")

ANALYSIS_TYPES = ('pseudogene', 'est_discrimination')


def create_sequence_fetcher(config: Dict[str, Any]):
    """Create a sequence fetcher from the 'sequence_fetcher' section"""
    fetcher_type = config.get('type', 'indexed_fasta')

    if fetcher_type == 'indexed_fasta':
        index_file = config.get('index_file')
        if not index_file:
            raise ConfigurationError("sequence_fetcher.index_file is required for indexed_fasta")
        return IndexedFastaFetcher(index_file)
    elif fetcher_type == 'ena':
        return EnaSequenceFetcher(base_url=config.get('ena_url') or DEFAULT_ENA_URL,
                                  timeout=config.get('timeout', 30))

    raise ConfigurationError(f"Unknown sequence fetcher type: {fetcher_type}")


def create_job(context: ApplicationContext, analysis_type: str, input_id: str = "default",
               **collaborators) -> AnnotationJob:
    """Create an annotation job

    Args:
        context: Application context (configuration and databases)
        analysis_type: 'pseudogene' or 'est_discrimination'
        input_id: Identifier of the job input
        **collaborators: Overrides for the job's collaborators

    Returns:
        AnnotationJob instance

    Raises:
        JobError: If the analysis type is unknown or a required collaborator is missing
    """
    logger.debug(f"Creating job of type: {analysis_type}")

    if analysis_type == 'pseudogene':
        return _create_pseudogene_job(context, input_id, collaborators)
    elif analysis_type == 'est_discrimination':
        return _create_discrimination_job(context, input_id, collaborators)

    raise JobError(f"Unknown analysis type: {analysis_type}", {"known": list(ANALYSIS_TYPES)})


def _create_pseudogene_job(context: ApplicationContext, input_id: str,
                           collaborators: Dict[str, Any]) -> PseudogeneJob:
    config = context.config_manager
    genomic_dir = collaborators.get('genomic_dir') or config.get_path('genomic_dir')

    alignment_source = collaborators.get('alignment_source')
    if alignment_source is None:
        raise JobError("A pseudogene job needs an alignment_source")

    options = ClassifierOptions.from_config(config.get_section('pseudogene'))
    slicer = collaborators.get('slicer') or ChromosomeFileSlicer(genomic_dir)
    classifier = PseudogeneClassifier(options, splice_checker=SpliceSiteChecker(slicer))

    genome = collaborators.get('genome') or GenomeRepository(context.db)
    writer = collaborators.get('writer') or GenomeRepository(context.est_db)

    return PseudogeneJob(
        input_id=input_id,
        genome=genome,
        alignment_source=alignment_source,
        query_sequences=collaborators.get('query_sequences', []),
        genomic_dir=genomic_dir,
        classifier=classifier,
        writer=writer,
        align_options=collaborators.get('align_options'),
    )


def _create_discrimination_job(context: ApplicationContext, input_id: str,
                               collaborators: Dict[str, Any]) -> EvidenceDiscriminationJob:
    config = context.config_manager
    section = config.get_section('est_discrimination')

    genome = collaborators.get('genome') or ChromosomeFileSlicer(config.get_path('genomic_dir'))
    seq_fetcher = (collaborators.get('seq_fetcher') or
                   create_sequence_fetcher(config.get_section('sequence_fetcher')))
    builder = AlignmentBuilder(genome, seq_fetcher,
                               padding=section.get('alignment_padding', 15),
                               remove_introns=section.get('remove_introns', False))

    mode = section.get('distance_mode', 'informative_sites')
    if mode == 'informative_sites':
        calculator = InformativeSiteDistanceCalculator(builder)
    elif mode == 'nucleotide':
        calculator = NucleotideDistanceCalculator(builder)
    else:
        raise ConfigurationError(f"Unknown distance mode: {mode}")

    output_path = collaborators.get('output_path') or os.path.join(
        config.get_path('output_dir', '.'), f"{input_id}.est_discrimination.tsv")

    return EvidenceDiscriminationJob(
        input_id=input_id,
        locus_ids=collaborators.get('locus_ids', []),
        locus_source=collaborators.get('locus_source') or GenomeRepository(context.db),
        evidence_source=collaborators.get('evidence_source') or GenomeRepository(context.est_db),
        distance_calculator=calculator,
        output_path=output_path,
        coverage_cutoff=config.get_option('EST_COVERAGE_CUTOFF'),
        distance_twilight=config.get_option('DISTANCE_TWILIGHT'),
    )
