#!/usr/bin/env python3
"""
Shared fixtures for the genebuild tests: an in-memory genome, a sequence
fetcher over a dictionary and builders for alignment records, loci and
evidence.
"""
import random
from typing import Dict, List, Sequence, Tuple

import pytest

from genebuild.exceptions import SequenceRetrievalError
from genebuild.models.alignment import AlignedBlock, AlignmentRecord, SupportingFeature
from genebuild.models.gene import EvidenceItem, Exon, Locus, Transcript

BASES = "ACGT"

# Substitution used to plant differences between otherwise identical loci
SUBSTITUTE = {'A': 'C', 'C': 'G', 'G': 'T', 'T': 'A'}


class FakeGenome:
    """In-memory genome implementing fetch_region and sequence_slice"""

    def __init__(self, sequences: Dict[str, str]):
        self.sequences = sequences
        self.region_calls = 0

    def chromosome_names(self) -> List[str]:
        return sorted(self.sequences)

    def fetch_region(self, coord_system: str, name: str, start: int, end: int) -> str:
        self.region_calls += 1
        if name not in self.sequences:
            raise SequenceRetrievalError(f"Unknown region {name}")
        return self.sequences[name][max(start, 1) - 1:end]

    def sequence_slice(self, region: str, start: int, end: int) -> str:
        return self.fetch_region('chromosome', region, start, end)


class FakeFetcher:
    """Sequence fetcher over a dictionary"""

    def __init__(self, sequences: Dict[str, str]):
        self.sequences = sequences
        self.calls: List[str] = []

    def fetch_by_accession(self, accession: str) -> str:
        self.calls.append(accession)
        if accession not in self.sequences:
            raise SequenceRetrievalError(f"Sequence {accession} not found")
        return self.sequences[accession]


class FakeEvidenceSource:
    """Evidence source returning fixed evidence per locus id"""

    def __init__(self, evidence: Dict[str, List[EvidenceItem]]):
        self.evidence = evidence
        self.calls = 0

    def overlapping_evidence(self, locus: Locus) -> List[EvidenceItem]:
        self.calls += 1
        return list(self.evidence.get(locus.locus_id, []))


def random_sequence(length: int, seed: int = 7) -> str:
    rng = random.Random(seed)
    return ''.join(rng.choice(BASES) for _ in range(length))


def mutate(sequence: str, positions: Sequence[int]) -> str:
    """Substitute the bases at the given 0-based positions"""
    bases = list(sequence)
    for position in positions:
        bases[position] = SUBSTITUTE[bases[position].upper()]
    return ''.join(bases)


def build_record(source_id: str, coverage: float, percent_id: float,
                 blocks: Sequence[Tuple[int, int]], strand: int = 1,
                 region: str = "1") -> AlignmentRecord:
    """Alignment record with one supporting feature per block"""
    aligned = []
    hit_start = 1
    for start, end in blocks:
        length = end - start + 1
        feature = SupportingFeature(hit_name=source_id, score=coverage, percent_id=percent_id,
                                    hit_start=hit_start, hit_end=hit_start + length - 1,
                                    strand=strand, hit_strand=1)
        aligned.append(AlignedBlock(start=start, end=end, strand=strand, feature=feature))
        hit_start += length
    return AlignmentRecord(source_id=source_id, blocks=aligned, seq_region_name=region)


def build_locus(locus_id: str, exons: Sequence[Tuple[int, int]], strand: int = 1,
                region: str = "1", coding_sequence: str = None) -> Locus:
    transcript = Transcript(transcript_id=f"{locus_id}-T1",
                            exons=[Exon(start=s, end=e, strand=strand) for s, e in exons],
                            coding_sequence=coding_sequence)
    return Locus(locus_id=locus_id, seq_region_name=region, transcripts=[transcript])


def build_evidence(name: str, blocks: Sequence[Tuple[int, int]], strand: int = 1,
                   hit_strand: int = 1, region: str = "1") -> EvidenceItem:
    """Evidence item whose blocks map consecutive stretches of the EST"""
    aligned = []
    hit_start = 1
    for start, end in blocks:
        length = end - start + 1
        feature = SupportingFeature(hit_name=name, score=100.0, percent_id=100.0,
                                    hit_start=hit_start, hit_end=hit_start + length - 1,
                                    strand=strand, hit_strand=hit_strand)
        aligned.append(AlignedBlock(start=start, end=end, strand=strand, feature=feature))
        hit_start += length
    return EvidenceItem(name=name, seq_region_name=region, blocks=aligned)


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def make_locus():
    return build_locus


@pytest.fixture
def make_evidence():
    return build_evidence


@pytest.fixture
def genome_sequence():
    """400 bp chromosome '1'"""
    return random_sequence(400)


@pytest.fixture
def fake_genome(genome_sequence):
    return FakeGenome({"1": genome_sequence})


@pytest.fixture
def paralog_genome():
    """Chromosome '1' with two 60 bp exons (101-160, 201-260) differing at six sites

    Returns:
        Tuple of (FakeGenome, exon sequence of locus A, exon sequence of locus B)
    """
    sequence = random_sequence(400)
    exon_a = sequence[100:160]
    exon_b = mutate(exon_a, [5, 15, 25, 35, 45, 55])
    sequence = sequence[:200] + exon_b + sequence[260:]
    return FakeGenome({"1": sequence}), exon_a, exon_b
