# genebuild/models/gene.py
"""
Gene-level models: exons, transcripts, loci and the EST evidence that
overlaps them, plus the pseudogene candidates emitted by the classifier.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Tuple

from genebuild.exceptions import ValidationError
from genebuild.models.alignment import AlignedBlock, AlignmentRecord, SupportingFeature
from genebuild.utils.sequence import parse_slice_name, slice_to_chromosome

logger = logging.getLogger("genebuild.models.gene")


@dataclass
class Exon:
    """Exon in genomic coordinates"""
    start: int
    end: int
    strand: int
    supporting_features: List[SupportingFeature] = field(default_factory=list)

    def __post_init__(self):
        if self.start > self.end:
            raise ValidationError(f"Exon start {self.start} is after its end {self.end}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass
class Transcript:
    """Transcript model made of exons

    The coding sequence is optional; transcripts without one are not
    translatable and cannot represent their locus in distance calculations.
    """
    transcript_id: str
    exons: List[Exon] = field(default_factory=list)
    coding_sequence: Optional[str] = None

    @property
    def strand(self) -> int:
        return self.exons[0].strand if self.exons else 1

    @property
    def start(self) -> int:
        return min(exon.start for exon in self.exons)

    @property
    def end(self) -> int:
        return max(exon.end for exon in self.exons)

    @property
    def length(self) -> int:
        return sum(exon.length for exon in self.exons)

    @property
    def is_translatable(self) -> bool:
        return bool(self.coding_sequence) and len(self.coding_sequence) >= 3

    def sorted_exons(self) -> List[Exon]:
        """Exons in transcript order (descending start on the reverse strand)"""
        return sorted(self.exons, key=lambda exon: exon.start, reverse=(self.strand == -1))


@dataclass
class Locus:
    """Genomic locus (gene) with one or more transcript models"""
    locus_id: str
    seq_region_name: str
    transcripts: List[Transcript] = field(default_factory=list)

    def __post_init__(self):
        if not self.locus_id:
            raise ValidationError("Locus needs an identifier")

    @property
    def exons(self) -> List[Exon]:
        return [exon for transcript in self.transcripts for exon in transcript.exons]

    def exon_spans(self) -> List[Tuple[int, int]]:
        """Exon extents of all transcripts merged into sorted, disjoint spans"""
        spans: List[Tuple[int, int]] = []
        for exon in sorted(self.exons, key=lambda e: e.start):
            if spans and exon.start <= spans[-1][1] + 1:
                spans[-1] = (spans[-1][0], max(spans[-1][1], exon.end))
            else:
                spans.append((exon.start, exon.end))
        return spans

    @property
    def start(self) -> int:
        return min(transcript.start for transcript in self.transcripts)

    @property
    def end(self) -> int:
        return max(transcript.end for transcript in self.transcripts)

    @property
    def strand(self) -> int:
        return self.transcripts[0].strand if self.transcripts else 1

    def longest_translatable_transcript(self) -> Optional[Transcript]:
        """Transcript with the longest coding sequence, or None if none translates"""
        translatable = [t for t in self.transcripts if t.is_translatable]
        if not translatable:
            logger.warning(f"Locus {self.locus_id} has no translatable transcript")
            return None
        return max(translatable, key=lambda t: len(t.coding_sequence))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'locus_id': self.locus_id,
            'seq_region_name': self.seq_region_name,
            'start': self.start if self.transcripts else None,
            'end': self.end if self.transcripts else None,
            'strand': self.strand,
            'transcripts': [t.transcript_id for t in self.transcripts],
        }


@dataclass
class EvidenceItem:
    """EST (or other transcript evidence) aligned to the genome"""
    name: str
    seq_region_name: str
    blocks: List[AlignedBlock] = field(default_factory=list)

    def __post_init__(self):
        if not self.name:
            raise ValidationError("Evidence item needs a name")

    @property
    def start(self) -> int:
        return min(block.start for block in self.blocks)

    @property
    def end(self) -> int:
        return max(block.end for block in self.blocks)

    @property
    def strand(self) -> int:
        return self.blocks[0].strand if self.blocks else 1

    def covered_bases(self) -> int:
        """Number of genomic bases covered by the evidence blocks"""
        return sum(block.length for block in self.blocks)

    def coverage_against(self, locus: Locus) -> float:
        """Fraction of this item's bases that fall inside any exon of the locus

        Raises:
            ValidationError: If the item has no aligned bases
        """
        total = self.covered_bases()
        if total == 0:
            raise ValidationError(f"Evidence item {self.name} has zero length")

        spans = locus.exon_spans()
        inside = 0
        for block in self.blocks:
            for start, end in spans:
                overlap = min(block.end, end) - max(block.start, start) + 1
                if overlap > 0:
                    inside += overlap
        return inside / total


@dataclass
class CandidatePseudogene:
    """Unspliced alignment flagged as a potential processed pseudogene"""
    record: AlignmentRecord
    rank: int
    label: str = 'potential_processed_pseudogene'
    strand_corrected: bool = False
    logic_name: str = 'pseudogene'

    @property
    def source_id(self) -> str:
        return self.record.source_id

    @property
    def coverage(self) -> float:
        return self.record.coverage

    @property
    def percent_id(self) -> float:
        return self.record.percent_id

    def to_locus(self) -> Locus:
        """Single-transcript gene model with one exon per aligned block"""
        exons = [
            Exon(start=block.start, end=block.end, strand=block.strand,
                 supporting_features=[block.feature] if block.feature else [])
            for block in self.record.blocks
        ]
        transcript = Transcript(transcript_id=f"{self.source_id}.{self.rank}", exons=exons)
        return Locus(locus_id=f"{self.logic_name}:{self.source_id}.{self.rank}",
                     seq_region_name=self.record.seq_region_name,
                     transcripts=[transcript])

    def to_chromosome_coordinates(self) -> 'CandidatePseudogene':
        """Map blocks from a slice region (chr.start-end) onto the chromosome

        Records already expressed in chromosome coordinates are returned as is.
        """
        region = self.record.seq_region_name
        parsed = parse_slice_name(region)
        if parsed is None:
            return self

        chromosome = parsed[0]
        blocks = []
        for block in self.record.blocks:
            _, start = slice_to_chromosome(region, block.start)
            _, end = slice_to_chromosome(region, block.end)
            blocks.append(AlignedBlock(start=start, end=end, strand=block.strand, feature=block.feature))

        record = AlignmentRecord(source_id=self.record.source_id, blocks=blocks,
                                 seq_region_name=chromosome)
        return CandidatePseudogene(record=record, rank=self.rank, label=self.label,
                                   strand_corrected=self.strand_corrected,
                                   logic_name=self.logic_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_id': self.source_id,
            'rank': self.rank,
            'label': self.label,
            'coverage': self.coverage,
            'percent_id': self.percent_id,
            'seq_region_name': self.record.seq_region_name,
            'start': self.record.start,
            'end': self.record.end,
            'strand': self.record.strand,
            'block_count': self.record.block_count,
            'strand_corrected': self.strand_corrected,
            'logic_name': self.logic_name,
        }
