#!/usr/bin/env python3
"""
Evidence alignments: a transcript's genomic region aligned against the
ESTs that support it.

Every row is laid out over the same genomic columns, in transcript
orientation:

    genomic_sequence  the genomic bases of the region (plus padding)
    exon_sequence     genomic bases inside exons, '-' elsewhere
    <est name>        EST bases placed through its aligned blocks

Rows are right-padded with '-' so that all of them share one length.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Mapping, Optional, Sequence

from genebuild.exceptions import SequenceRetrievalError, ValidationError
from genebuild.models.gene import EvidenceItem, Transcript
from genebuild.utils.sequence import complement

GENOMIC_ROW = "genomic_sequence"
EXON_ROW = "exon_sequence"
GAP = "-"

DEFAULT_PADDING = 15


class EvidenceAlignment:
    """Named, ordered set of equal-length gapped rows"""

    def __init__(self, name: str, rows: Optional[Mapping[str, str]] = None):
        self.name = name
        self.rows: Dict[str, str] = OrderedDict(rows or {})

    def __getitem__(self, row_name: str) -> str:
        return self.rows[row_name]

    def __contains__(self, row_name: str) -> bool:
        return row_name in self.rows

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def names(self) -> List[str]:
        return list(self.rows)

    @property
    def evidence_names(self) -> List[str]:
        return [name for name in self.rows if name not in (GENOMIC_ROW, EXON_ROW)]

    @property
    def length(self) -> int:
        return max((len(seq) for seq in self.rows.values()), default=0)

    def add_row(self, row_name: str, sequence: str) -> None:
        self.rows[row_name] = sequence

    def pad(self) -> 'EvidenceAlignment':
        """Right-pad every row with gaps to the longest row (in place)"""
        longest = self.length
        for row_name, seq in self.rows.items():
            if len(seq) < longest:
                self.rows[row_name] = seq + GAP * (longest - len(seq))
        return self

    def restrict(self, columns: Sequence[int],
                 exclude: Sequence[str] = (GENOMIC_ROW,)) -> 'EvidenceAlignment':
        """Sub-alignment made of the given column indices (0-based)

        Raises:
            ValidationError: If a column lies outside the alignment
        """
        length = self.length
        bad = [c for c in columns if c < 0 or c >= length]
        if bad:
            raise ValidationError(f"Columns outside alignment {self.name}: {bad[:5]}")

        restricted = EvidenceAlignment(self.name)
        for row_name, seq in self.rows.items():
            if row_name in exclude:
                continue
            restricted.add_row(row_name, ''.join(seq[c] for c in columns))
        return restricted

    def to_dict(self) -> Dict[str, str]:
        return dict(self.rows)


class AlignmentBuilder:
    """Builds and caches evidence alignments per reference identifier"""

    def __init__(self, genome, seq_fetcher, padding: int = DEFAULT_PADDING,
                 remove_introns: bool = False, coord_system: str = 'chromosome'):
        """Initialize builder

        Args:
            genome: Object providing fetch_region(coord_system, name, start, end)
            seq_fetcher: Object providing fetch_by_accession(accession)
            padding: Genomic bases shown either side of the transcript
            remove_introns: Lay columns over exon positions only
            coord_system: Coordinate system passed to the genome access
        """
        if genome is None:
            raise ValidationError("Alignment builder needs genome access")
        if seq_fetcher is None:
            raise ValidationError("Alignment builder needs a sequence fetcher")

        self.logger = logging.getLogger("genebuild.sequence.alignment")
        self.genome = genome
        self.seq_fetcher = seq_fetcher
        self.padding = padding
        self.remove_introns = remove_introns
        self.coord_system = coord_system
        self._cache: Dict[str, EvidenceAlignment] = {}

    def cached(self, reference_id: str) -> Optional[EvidenceAlignment]:
        return self._cache.get(reference_id)

    def build(self, reference_id: str, transcript: Transcript, seq_region_name: str,
              evidence_items: Sequence[EvidenceItem]) -> EvidenceAlignment:
        """Align a transcript's region against its evidence

        Args:
            reference_id: Cache key, normally the locus identifier
            transcript: Transcript providing the exon structure
            seq_region_name: Region the transcript lies on
            evidence_items: Evidence to place in the alignment

        Returns:
            EvidenceAlignment with genomic, exon and evidence rows
        """
        if reference_id in self._cache:
            return self._cache[reference_id]

        if not transcript.exons:
            raise ValidationError(f"Transcript {transcript.transcript_id} has no exons")

        strand = transcript.strand
        region_start = max(1, transcript.start - self.padding)
        region_end = transcript.end + self.padding
        genomic = self.genome.fetch_region(self.coord_system, seq_region_name,
                                           region_start, region_end) or ""

        if self.remove_introns:
            positions = sorted({p for exon in transcript.exons
                                for p in range(exon.start, exon.end + 1)})
        else:
            positions = list(range(region_start, region_end + 1))
        if strand == -1:
            positions.reverse()

        alignment = EvidenceAlignment(reference_id)

        # Positions beyond the end of the fetched region are gaps
        genomic_row = []
        for position in positions:
            offset = position - region_start
            if offset < len(genomic):
                genomic_row.append(self._oriented(genomic[offset], strand))
            else:
                genomic_row.append(GAP)
        alignment.add_row(GENOMIC_ROW, ''.join(genomic_row))

        exon_positions = {p for exon in transcript.exons for p in range(exon.start, exon.end + 1)}
        exon_row = []
        for position in positions:
            offset = position - region_start
            if position in exon_positions and offset < len(genomic):
                exon_row.append(self._oriented(genomic[offset], strand))
            else:
                exon_row.append(GAP)
        alignment.add_row(EXON_ROW, ''.join(exon_row))

        for item in evidence_items:
            row = self._evidence_row(item, positions, strand)
            if row is not None:
                alignment.add_row(item.name, row)

        alignment.pad()
        self.logger.debug(f"Built alignment {reference_id}: {len(alignment)} rows, "
                          f"{alignment.length} columns")
        self._cache[reference_id] = alignment
        return alignment

    def _evidence_row(self, item: EvidenceItem, positions: List[int], strand: int) -> Optional[str]:
        try:
            sequence = self.seq_fetcher.fetch_by_accession(item.name)
        except SequenceRetrievalError as e:
            self.logger.warning(f"Leaving {item.name} out of the alignment: {str(e)}")
            return None

        placed: Dict[int, str] = {}
        for block in item.blocks:
            feature = block.feature
            if feature is None:
                continue
            orientation = block.strand * feature.hit_strand
            for position in range(block.start, block.end + 1):
                offset = position - block.start if orientation == 1 else block.end - position
                index = feature.hit_start - 1 + offset
                if 0 <= index < len(sequence):
                    base = sequence[index]
                    placed[position] = base if orientation == 1 else complement(base)

        if not placed:
            self.logger.warning(f"Evidence {item.name} places no bases in the alignment")

        return ''.join(self._oriented(placed[p], strand) if p in placed else GAP
                       for p in positions)

    @staticmethod
    def _oriented(base: str, strand: int) -> str:
        return complement(base) if strand == -1 else base
