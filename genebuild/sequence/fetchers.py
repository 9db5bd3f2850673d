#!/usr/bin/env python3
"""
Sequence retrieval capabilities and their adapters.

The pipelines only depend on the narrow protocols defined here; the
adapters read indexed FASTA files, per-chromosome FASTA files or query
the ENA browser API.
"""
import os
import logging
from io import StringIO
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import requests
from Bio import SeqIO

from genebuild.exceptions import SequenceRetrievalError
from genebuild.utils.sequence import parse_slice_name

DEFAULT_ENA_URL = "https://www.ebi.ac.uk/ena/browser/api/fasta"


@runtime_checkable
class SequenceFetcher(Protocol):
    """Fetches a full sequence by accession"""

    def fetch_by_accession(self, accession: str) -> str:
        ...


@runtime_checkable
class GenomeAccess(Protocol):
    """Fetches a genomic region (1-based inclusive coordinates)"""

    def fetch_region(self, coord_system: str, name: str, start: int, end: int) -> str:
        ...


@runtime_checkable
class SequenceSlicer(Protocol):
    """Returns the bases of a short region, used for splice-site lookup"""

    def sequence_slice(self, region: str, start: int, end: int) -> str:
        ...


@runtime_checkable
class AlignmentSource(Protocol):
    """Aligns query sequences against one target (chromosome file)"""

    def align(self, query_sequences: Sequence[Any], target_database: str,
              options: Optional[Dict[str, Any]] = None) -> List[Any]:
        ...


@runtime_checkable
class EvidenceSource(Protocol):
    """Returns the evidence alignments overlapping a locus"""

    def overlapping_evidence(self, locus: Any) -> List[Any]:
        ...


class IndexedFastaFetcher:
    """Sequence fetcher over an indexed FASTA file"""

    def __init__(self, fasta_path: str):
        if not os.path.exists(fasta_path):
            raise SequenceRetrievalError(f"FASTA file not found: {fasta_path}")

        self.logger = logging.getLogger("genebuild.sequence.fetchers")
        self.fasta_path = fasta_path
        self._index = SeqIO.index(fasta_path, "fasta")
        self.logger.debug(f"Indexed {len(self._index)} sequences from {fasta_path}")

    def fetch_by_accession(self, accession: str) -> str:
        try:
            record = self._index[accession]
        except KeyError:
            # Fall back to the unversioned accession
            base = accession.split('.')[0]
            if base != accession and base in self._index:
                record = self._index[base]
            else:
                raise SequenceRetrievalError(
                    f"Sequence {accession} not found in {self.fasta_path}")
        return str(record.seq)

    def close(self) -> None:
        self._index.close()


class EnaSequenceFetcher:
    """Sequence fetcher backed by the ENA browser FASTA endpoint"""

    def __init__(self, base_url: str = DEFAULT_ENA_URL, timeout: int = 30,
                 session: Optional[requests.Session] = None):
        self.logger = logging.getLogger("genebuild.sequence.fetchers")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache: Dict[str, str] = {}

    def fetch_by_accession(self, accession: str) -> str:
        if accession in self._cache:
            return self._cache[accession]

        url = f"{self.base_url}/{accession}"
        self.logger.debug(f"Fetching {accession} from {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SequenceRetrievalError(f"Failed to fetch {accession}: {str(e)}",
                                         {"url": url}) from e

        records = list(SeqIO.parse(StringIO(response.text), "fasta"))
        if not records:
            raise SequenceRetrievalError(f"No sequence returned for {accession}", {"url": url})

        sequence = str(records[0].seq)
        self._cache[accession] = sequence
        return sequence


class ChromosomeFileSlicer:
    """Genome access over one FASTA file per chromosome (<dir>/<name>.fa)

    Only the most recently used chromosome is kept in memory.
    """

    def __init__(self, genomic_dir: str, extension: str = ".fa"):
        self.logger = logging.getLogger("genebuild.sequence.fetchers")
        self.genomic_dir = genomic_dir
        self.extension = extension
        self._current_name: Optional[str] = None
        self._current_seq: str = ""

    def path_for(self, name: str) -> str:
        return os.path.join(self.genomic_dir, f"{name}{self.extension}")

    def _load(self, name: str) -> str:
        if name == self._current_name:
            return self._current_seq

        path = self.path_for(name)
        if not os.path.exists(path):
            raise SequenceRetrievalError(f"No sequence file for region {name}", {"path": path})

        try:
            record = next(SeqIO.parse(path, "fasta"))
        except StopIteration:
            raise SequenceRetrievalError(f"Sequence file {path} is empty")

        self._current_name = name
        self._current_seq = str(record.seq)
        self.logger.debug(f"Loaded {name} ({len(self._current_seq)} bp) from {path}")
        return self._current_seq

    def fetch_region(self, coord_system: str, name: str, start: int, end: int) -> str:
        """Bases start..end (1-based, inclusive) of a region; '' if out of range"""
        sequence = self._load(name)
        if start < 1 or start > end:
            return ""
        return sequence[start - 1:end]

    def sequence_slice(self, region: str, start: int, end: int) -> str:
        """Like fetch_region, translating slice names (chr.start-end) first"""
        parsed = parse_slice_name(region)
        if parsed is not None:
            chromosome, offset, _ = parsed
            return self.fetch_region('chromosome', chromosome, offset + start - 1, offset + end - 1)
        return self.fetch_region('chromosome', region, start, end)
