# genebuild/db/repositories/genome_repository.py
#!/usr/bin/env python3
"""
Genome repository for the genebuild pipeline
Handles database operations for sequence regions, genes and mapped ESTs
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

from genebuild.db.manager import DBManager
from genebuild.exceptions import SequenceRetrievalError, ValidationError
from genebuild.models.alignment import AlignedBlock, SupportingFeature
from genebuild.models.gene import CandidatePseudogene, EvidenceItem, Exon, Locus, Transcript


class GenomeRepository:
    """Repository for genomic sequence, gene models and EST alignments"""

    SCHEMA = "genebuild"

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("genebuild.db.genome_repository")

    def chromosome_names(self) -> List[str]:
        """Names of all chromosome-level sequence regions"""
        query = f"""
        SELECT name
        FROM {self.SCHEMA}.seq_region
        WHERE coord_system = 'chromosome'
        ORDER BY name
        """
        rows = self.db.execute_query(query)
        names = [row[0] for row in rows]
        self.logger.info(f"Retrieved {len(names)} chromosome names")
        return names

    def fetch_region(self, coord_system: str, name: str, start: int, end: int) -> str:
        """Bases start..end (1-based, inclusive) of a sequence region

        Raises:
            SequenceRetrievalError: If the region is unknown
        """
        if start > end:
            raise ValidationError(f"Region start {start} is after its end {end}")

        query = f"""
        SELECT SUBSTRING(d.sequence FROM %s FOR %s) AS sequence
        FROM {self.SCHEMA}.dna d
        JOIN {self.SCHEMA}.seq_region sr ON d.seq_region_id = sr.id
        WHERE sr.name = %s AND sr.coord_system = %s
        """
        rows = self.db.execute_dict_query(query, (start, end - start + 1, name, coord_system))
        if not rows:
            raise SequenceRetrievalError(f"Unknown sequence region {coord_system}:{name}")
        return rows[0]['sequence'] or ""

    def fetch_loci(self, locus_ids: Sequence[str]) -> List[Locus]:
        """Gene models for the given stable ids, in the order requested"""
        if not locus_ids:
            return []

        query = f"""
        SELECT g.stable_id AS locus_id, sr.name AS seq_region_name,
               t.stable_id AS transcript_id, t.coding_sequence,
               e.seq_start, e.seq_end, e.strand
        FROM {self.SCHEMA}.gene g
        JOIN {self.SCHEMA}.seq_region sr ON g.seq_region_id = sr.id
        JOIN {self.SCHEMA}.transcript t ON t.gene_id = g.id
        JOIN {self.SCHEMA}.exon e ON e.transcript_id = t.id
        WHERE g.stable_id = ANY(%s)
        ORDER BY g.stable_id, t.stable_id, e.rank
        """
        rows = self.db.execute_dict_query(query, (list(locus_ids),))

        regions: Dict[str, str] = {}
        transcripts: Dict[str, Dict[str, Transcript]] = OrderedDict()
        for row in rows:
            locus_id = row['locus_id']
            regions[locus_id] = row['seq_region_name']
            by_id = transcripts.setdefault(locus_id, OrderedDict())
            transcript = by_id.get(row['transcript_id'])
            if transcript is None:
                transcript = Transcript(transcript_id=row['transcript_id'],
                                        coding_sequence=row.get('coding_sequence'))
                by_id[row['transcript_id']] = transcript
            transcript.exons.append(Exon(start=row['seq_start'], end=row['seq_end'],
                                         strand=row['strand']))

        loci = [Locus(locus_id=locus_id, seq_region_name=regions[locus_id],
                      transcripts=list(transcripts[locus_id].values()))
                for locus_id in locus_ids if locus_id in transcripts]
        self.logger.debug(f"Fetched {len(loci)} of {len(locus_ids)} loci")
        return loci

    def overlapping_evidence(self, locus: Locus) -> List[EvidenceItem]:
        """EST alignments overlapping the extent of a locus"""
        query = f"""
        SELECT a.id AS alignment_id, a.name, sr.name AS seq_region_name,
               b.seq_start, b.seq_end, b.strand,
               b.hit_start, b.hit_end, b.hit_strand, b.score, b.percent_id
        FROM {self.SCHEMA}.est_alignment a
        JOIN {self.SCHEMA}.seq_region sr ON a.seq_region_id = sr.id
        JOIN {self.SCHEMA}.est_block b ON b.alignment_id = a.id
        WHERE sr.name = %s AND a.seq_start <= %s AND a.seq_end >= %s
        ORDER BY a.id, b.seq_start
        """
        rows = self.db.execute_dict_query(query, (locus.seq_region_name, locus.end, locus.start))

        items: Dict[int, EvidenceItem] = OrderedDict()
        for row in rows:
            item = items.get(row['alignment_id'])
            if item is None:
                item = EvidenceItem(name=row['name'], seq_region_name=row['seq_region_name'])
                items[row['alignment_id']] = item
            feature = SupportingFeature(
                hit_name=row['name'], score=row['score'], percent_id=row['percent_id'],
                hit_start=row['hit_start'], hit_end=row['hit_end'],
                strand=row['strand'], hit_strand=row['hit_strand'],
            )
            item.blocks.append(AlignedBlock(start=row['seq_start'], end=row['seq_end'],
                                            strand=row['strand'], feature=feature))

        self.logger.debug(f"{len(items)} EST alignments overlap {locus.locus_id}")
        return list(items.values())

    def store_candidate(self, candidate: CandidatePseudogene) -> int:
        """Store a pseudogene candidate as a single-transcript gene

        Returns:
            ID of the new gene row
        """
        locus = candidate.to_locus()
        transcript = locus.transcripts[0]

        with self.db.get_connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(f"SELECT id FROM {self.SCHEMA}.seq_region WHERE name = %s",
                               (locus.seq_region_name,))
                region = cursor.fetchone()
                if region is None:
                    raise ValidationError(f"Unknown sequence region {locus.seq_region_name}")

                gene_id = self.db.insert(f"{self.SCHEMA}.gene", {
                    "stable_id": locus.locus_id,
                    "seq_region_id": region[0],
                    "biotype": candidate.logic_name,
                    "strand_corrected": candidate.strand_corrected,
                }, returning="id", cursor=cursor)

                transcript_id = self.db.insert(f"{self.SCHEMA}.transcript", {
                    "stable_id": transcript.transcript_id,
                    "gene_id": gene_id,
                }, returning="id", cursor=cursor)

                for rank, exon in enumerate(transcript.sorted_exons(), start=1):
                    exon_id = self.db.insert(f"{self.SCHEMA}.exon", {
                        "transcript_id": transcript_id,
                        "seq_start": exon.start,
                        "seq_end": exon.end,
                        "strand": exon.strand,
                        "rank": rank,
                    }, returning="id", cursor=cursor)

                    for feature in exon.supporting_features:
                        self.db.insert(f"{self.SCHEMA}.supporting_feature", {
                            "exon_id": exon_id,
                            "hit_name": feature.hit_name,
                            "hit_start": feature.hit_start,
                            "hit_end": feature.hit_end,
                            "hit_strand": feature.hit_strand,
                            "score": feature.score,
                            "percent_id": feature.percent_id,
                        }, cursor=cursor)

        self.logger.info(f"Stored pseudogene {locus.locus_id} with ID {gene_id}")
        return gene_id

    def find_gene_id(self, stable_id: str) -> Optional[int]:
        rows = self.db.execute_query(
            f"SELECT id FROM {self.SCHEMA}.gene WHERE stable_id = %s", (stable_id,))
        return rows[0][0] if rows else None
