# genebuild/models/alignment.py
"""
Alignment records produced by the cDNA/EST-to-genome aligners.

An AlignmentRecord is one candidate placement of a query sequence on the
genome: an ordered set of ungapped blocks, each carrying the supporting
feature that produced it. The coverage and percent identity stored on the
first block's feature are representative of the whole alignment.
"""
from dataclasses import dataclass, replace
from typing import Dict, Any, List, Optional, Tuple

from genebuild.exceptions import ValidationError

VALID_STRANDS = (1, -1)

# Gaps between blocks of at most this many bases are frameshifts, not introns
DEFAULT_MAX_FRAMESHIFT_INTRON = 9


@dataclass(frozen=True)
class SupportingFeature:
    """Per-block alignment support (hit coordinates and scores)"""
    hit_name: str
    score: float
    percent_id: float
    hit_start: int = 1
    hit_end: int = 1
    strand: int = 1
    hit_strand: int = 1

    def flipped(self) -> 'SupportingFeature':
        """Same feature with genomic and hit strands inverted"""
        return replace(self, strand=-self.strand, hit_strand=-self.hit_strand)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hit_name': self.hit_name,
            'score': self.score,
            'percent_id': self.percent_id,
            'hit_start': self.hit_start,
            'hit_end': self.hit_end,
            'strand': self.strand,
            'hit_strand': self.hit_strand,
        }


@dataclass(frozen=True)
class AlignedBlock:
    """Ungapped aligned block in genomic coordinates (1-based, inclusive)"""
    start: int
    end: int
    strand: int
    feature: Optional[SupportingFeature] = None

    def __post_init__(self):
        if self.start > self.end:
            raise ValidationError(f"Block start {self.start} is after its end {self.end}")
        if self.strand not in VALID_STRANDS:
            raise ValidationError(f"Invalid block strand: {self.strand}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def overlaps(self, other: 'AlignedBlock') -> bool:
        return self.start <= other.end and other.start <= self.end

    def flipped(self) -> 'AlignedBlock':
        return replace(self, strand=-self.strand,
                       feature=self.feature.flipped() if self.feature else None)


@dataclass(frozen=True)
class AlignmentRecord:
    """One candidate alignment of a query sequence against the genome"""
    source_id: str
    blocks: Tuple[AlignedBlock, ...]
    seq_region_name: str

    def __post_init__(self):
        # Accept any sequence of blocks; store as a tuple to stay immutable
        object.__setattr__(self, 'blocks', tuple(self.blocks))

        if not self.source_id:
            raise ValidationError("Alignment record needs a source sequence identifier")
        if not self.blocks:
            raise ValidationError(f"Alignment record {self.source_id} has no aligned blocks")
        if len({block.strand for block in self.blocks}) > 1:
            raise ValidationError(f"Alignment record {self.source_id} has blocks on both strands")
        if self.blocks[0].feature is None:
            raise ValidationError(
                f"Alignment record {self.source_id} has no supporting feature data",
                {"seq_region_name": self.seq_region_name}
            )

    @property
    def coverage(self) -> float:
        return self.blocks[0].feature.score

    @property
    def percent_id(self) -> float:
        return self.blocks[0].feature.percent_id

    @property
    def block_count(self) -> int:
        return len(self.blocks)

    @property
    def strand(self) -> int:
        return self.blocks[0].strand

    @property
    def start(self) -> int:
        return min(block.start for block in self.blocks)

    @property
    def end(self) -> int:
        return max(block.end for block in self.blocks)

    @property
    def extent(self) -> str:
        """Region label used in log output: <seq_region>.<start>-<end>"""
        return f"{self.seq_region_name}.{self.start}-{self.end}"

    def sorted_blocks(self) -> List[AlignedBlock]:
        """Blocks in ascending genomic order"""
        return sorted(self.blocks, key=lambda block: block.start)

    def intron_lengths(self) -> List[int]:
        """Lengths of the gaps between consecutive blocks"""
        blocks = self.sorted_blocks()
        return [nxt.start - prev.end - 1 for prev, nxt in zip(blocks, blocks[1:])]

    def is_spliced(self, max_frameshift_intron: int = DEFAULT_MAX_FRAMESHIFT_INTRON) -> bool:
        """True if at least one gap between blocks is a real intron"""
        if self.block_count < 2:
            return False
        return any(length > max_frameshift_intron for length in self.intron_lengths())

    def overlaps(self, other: 'AlignmentRecord') -> bool:
        """Genomic overlap on the same region and strand"""
        if self.seq_region_name != other.seq_region_name or self.strand != other.strand:
            return False
        return any(a.overlaps(b) for a in self.blocks for b in other.blocks)

    def with_strand(self, strand: int) -> 'AlignmentRecord':
        """Copy with every block (and feature) moved to the given strand

        Blocks are re-sorted in transcript order: ascending start on the
        forward strand, descending on the reverse strand.
        """
        if strand not in VALID_STRANDS:
            raise ValidationError(f"Invalid strand: {strand}")
        blocks = [block if block.strand == strand else block.flipped() for block in self.blocks]
        blocks.sort(key=lambda block: block.start, reverse=(strand == -1))
        return replace(self, blocks=tuple(blocks))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_id': self.source_id,
            'seq_region_name': self.seq_region_name,
            'coverage': self.coverage,
            'percent_id': self.percent_id,
            'strand': self.strand,
            'blocks': [
                {'start': b.start, 'end': b.end, 'strand': b.strand,
                 'feature': b.feature.to_dict() if b.feature else None}
                for b in self.blocks
            ],
        }
