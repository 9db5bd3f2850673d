#!/usr/bin/env python3
"""
Tests for GenomeRepository against a mocked database manager.
"""
from unittest.mock import MagicMock

import pytest

from genebuild.db.repositories import GenomeRepository
from genebuild.exceptions import SequenceRetrievalError, ValidationError
from genebuild.models.gene import CandidatePseudogene
from genebuild.tests.conftest import build_locus, build_record


@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def repository(mock_db):
    return GenomeRepository(mock_db)


def exon_row(locus_id, transcript_id, start, end, strand=1, region="1", cds="ATGAAATAG"):
    return {
        'locus_id': locus_id, 'seq_region_name': region, 'transcript_id': transcript_id,
        'coding_sequence': cds, 'seq_start': start, 'seq_end': end, 'strand': strand,
    }


def block_row(alignment_id, name, start, end, hit_start, hit_end, strand=1):
    return {
        'alignment_id': alignment_id, 'name': name, 'seq_region_name': "1",
        'seq_start': start, 'seq_end': end, 'strand': strand,
        'hit_start': hit_start, 'hit_end': hit_end, 'hit_strand': 1,
        'score': 100.0, 'percent_id': 99.0,
    }


class TestSequenceAccess:

    def test_chromosome_names(self, repository, mock_db):
        mock_db.execute_query.return_value = [("1",), ("2",), ("X",)]
        assert repository.chromosome_names() == ["1", "2", "X"]

    def test_fetch_region(self, repository, mock_db):
        mock_db.execute_dict_query.return_value = [{'sequence': 'ACGT'}]

        assert repository.fetch_region('chromosome', '1', 10, 13) == 'ACGT'
        params = mock_db.execute_dict_query.call_args[0][1]
        assert params == (10, 4, '1', 'chromosome')

    def test_unknown_region(self, repository, mock_db):
        mock_db.execute_dict_query.return_value = []
        with pytest.raises(SequenceRetrievalError):
            repository.fetch_region('chromosome', 'Z', 1, 10)

    def test_inverted_region(self, repository):
        with pytest.raises(ValidationError):
            repository.fetch_region('chromosome', '1', 10, 5)


class TestLoci:

    def test_loci_in_requested_order(self, repository, mock_db):
        mock_db.execute_dict_query.return_value = [
            exon_row("g1", "g1-T1", 100, 200),
            exon_row("g1", "g1-T1", 300, 400),
            exon_row("g1", "g1-T2", 100, 200, cds="ATGTAG"),
            exon_row("g2", "g2-T1", 900, 1000, strand=-1),
        ]
        loci = repository.fetch_loci(["g2", "g1", "g3"])

        assert [locus.locus_id for locus in loci] == ["g2", "g1"]
        g1 = loci[1]
        assert [t.transcript_id for t in g1.transcripts] == ["g1-T1", "g1-T2"]
        assert len(g1.transcripts[0].exons) == 2
        assert g1.longest_translatable_transcript().transcript_id == "g1-T1"
        assert loci[0].strand == -1

    def test_no_ids_no_query(self, repository, mock_db):
        assert repository.fetch_loci([]) == []
        mock_db.execute_dict_query.assert_not_called()

    def test_overlapping_evidence(self, repository, mock_db):
        mock_db.execute_dict_query.return_value = [
            block_row(1, "EST1", 100, 150, 1, 51),
            block_row(1, "EST1", 300, 320, 52, 72),
            block_row(2, "EST2", 110, 160, 1, 51),
        ]
        locus = build_locus("g1", [(100, 160), (300, 320)])
        items = repository.overlapping_evidence(locus)

        assert [item.name for item in items] == ["EST1", "EST2"]
        assert len(items[0].blocks) == 2
        assert items[0].blocks[1].feature.hit_start == 52
        assert items[0].coverage_against(locus) == 1.0

        params = mock_db.execute_dict_query.call_args[0][1]
        assert params == ("1", 320, 100)


class TestStoreCandidate:

    @pytest.fixture
    def candidate(self):
        return CandidatePseudogene(record=build_record("X", 95, 98, [(1001, 1300)]), rank=2)

    @pytest.fixture
    def cursor(self, mock_db):
        conn = mock_db.get_connection.return_value.__enter__.return_value
        return conn.cursor.return_value.__enter__.return_value

    def test_store(self, repository, mock_db, cursor, candidate):
        cursor.fetchone.return_value = (7,)
        mock_db.insert.side_effect = [100, 200, 300, None]

        assert repository.store_candidate(candidate) == 100

        tables = [c[0][0] for c in mock_db.insert.call_args_list]
        assert tables == ["genebuild.gene", "genebuild.transcript", "genebuild.exon",
                          "genebuild.supporting_feature"]

        gene = mock_db.insert.call_args_list[0][0][1]
        assert gene['stable_id'] == "pseudogene:X.2"
        assert gene['seq_region_id'] == 7
        assert gene['strand_corrected'] is False

        exon = mock_db.insert.call_args_list[2][0][1]
        assert (exon['seq_start'], exon['seq_end'], exon['rank']) == (1001, 1300, 1)
        assert mock_db.insert.call_args_list[2][1]['cursor'] is cursor

    def test_unknown_region(self, repository, cursor, candidate):
        cursor.fetchone.return_value = None
        with pytest.raises(ValidationError):
            repository.store_candidate(candidate)

    def test_find_gene_id(self, repository, mock_db):
        mock_db.execute_query.return_value = [(100,)]
        assert repository.find_gene_id("pseudogene:X.2") == 100

        mock_db.execute_query.return_value = []
        assert repository.find_gene_id("missing") is None
