#!/usr/bin/env python3
"""
Default configuration values for the genebuild pipeline
"""

DEFAULT_CONFIG = {
    'database': {
        'database': 'genebuild_core',
        'host': 'localhost',
        'port': 5432,
        'user': 'genebuild',
    },
    'est_database': {
        'database': 'genebuild_est',
        'host': 'localhost',
        'port': 5432,
        'user': 'genebuild',
    },
    'paths': {
        'output_dir': './output',
        'genomic_dir': './genome',
    },
    'tools': {
        'exonerate_path': 'exonerate',
    },
    'pseudogene': {
        'min_coverage': 90.0,
        'min_percent_id': 97.0,
        'best_in_genome': True,
        'max_frameshift_intron': 9,
        'remove_overlaps': True,
        'logic_name': 'pseudogene',
    },
    'est_discrimination': {
        'est_coverage_cutoff': 0.8,
        'distance_twilight': 0.02,
        'distance_mode': 'informative_sites',
        'alignment_padding': 15,
        'remove_introns': False,
    },
    'sequence_fetcher': {
        'type': 'indexed_fasta',
        'index_file': '',
        'ena_url': 'https://www.ebi.ac.uk/ena/browser/api/fasta',
        'timeout': 30,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}

# Flat option names used by the original pipeline configuration files,
# mapped onto their dotted location in DEFAULT_CONFIG
FLAT_OPTIONS = {
    'MIN_COVERAGE': 'pseudogene.min_coverage',
    'MIN_PERCENT_ID': 'pseudogene.min_percent_id',
    'BEST_IN_GENOME': 'pseudogene.best_in_genome',
    'EST_COVERAGE_CUTOFF': 'est_discrimination.est_coverage_cutoff',
    'DISTANCE_TWILIGHT': 'est_discrimination.distance_twilight',
    'EST_GENOMIC': 'paths.genomic_dir',
}
