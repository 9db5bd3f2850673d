#!/usr/bin/env python3
"""
Tests for the processed pseudogene classifier.
"""
import logging
from unittest.mock import Mock

import pytest

from genebuild.exceptions import ValidationError
from genebuild.models.alignment import AlignedBlock, AlignmentRecord
from genebuild.pipelines.pseudogene.classifier import (
    BEST_MATCH, POTENTIAL_PSEUDOGENE, ClassifierOptions, PseudogeneClassifier
)
from genebuild.tests.conftest import build_record

# Block layouts: one block, spliced (two long introns) and frameshifted (3 bp gap)
SINGLE_BLOCK = [(1001, 1300)]
SPLICED = [(5001, 5100), (5601, 5700), (6201, 6300)]
FRAMESHIFTED = [(9001, 9150), (9154, 9300)]


@pytest.fixture
def classifier():
    return PseudogeneClassifier(ClassifierOptions(min_coverage=90, min_percent_id=97))


@pytest.fixture
def scenario_group():
    """Three alignments of X: coverages [95, 95, 40], blocks [1, 3, 2], identities [98, 99, 85]"""
    return [
        build_record("X", 95, 98, SINGLE_BLOCK),
        build_record("X", 95, 99, SPLICED),
        build_record("X", 40, 85, FRAMESHIFTED),
    ]


class TestSplicing:

    def test_single_block_is_never_spliced(self):
        assert not build_record("X", 95, 98, SINGLE_BLOCK).is_spliced()

    def test_long_gaps_are_introns(self):
        assert build_record("X", 95, 98, SPLICED).is_spliced()

    def test_short_gaps_are_frameshifts(self):
        record = build_record("X", 95, 98, FRAMESHIFTED)
        assert not record.is_spliced()
        assert record.is_spliced(max_frameshift_intron=2)


class TestRanking:

    def test_coverage_first(self, classifier):
        records = [build_record("X", 80, 99, SPLICED), build_record("X", 95, 90, SINGLE_BLOCK)]
        assert classifier.rank(records)[0].coverage == 95

    def test_block_count_breaks_coverage_ties(self, classifier):
        records = [build_record("X", 95, 99, SINGLE_BLOCK), build_record("X", 95, 90, SPLICED)]
        assert classifier.rank(records)[0].block_count == 3

    def test_percent_id_breaks_block_ties(self, classifier):
        records = [build_record("X", 95, 97, SINGLE_BLOCK), build_record("X", 95, 99, [(2001, 2300)])]
        assert classifier.rank(records)[0].percent_id == 99

    def test_best_has_highest_coverage(self, classifier, scenario_group):
        ranked = classifier.rank(scenario_group)
        assert all(ranked[0].coverage >= r.coverage for r in ranked)

    def test_group_by_source(self, classifier):
        records = [build_record("X", 95, 98, SINGLE_BLOCK), build_record("Y", 90, 98, SINGLE_BLOCK),
                   build_record("X", 50, 98, SPLICED)]
        groups = classifier.group_by_source(records)

        assert list(groups) == ["X", "Y"]
        assert len(groups["X"]) == 2


class TestBestInGenome:

    def test_scenario(self, classifier, scenario_group):
        verdicts = classifier.classify_group(scenario_group)

        assert [v.record.block_count for v in verdicts] == [3, 1, 2]
        assert verdicts[0].label == BEST_MATCH
        assert not verdicts[0].accepted

        assert verdicts[1].label == POTENTIAL_PSEUDOGENE
        assert verdicts[1].accepted

        # unspliced but far below the best score
        assert verdicts[2].label == POTENTIAL_PSEUDOGENE
        assert not verdicts[2].accepted

    def test_log_line_per_record(self, classifier, scenario_group, caplog):
        with caplog.at_level(logging.INFO):
            classifier.classify_group(scenario_group)

        lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("match:")]
        assert len(lines) == 3
        assert "comment:best_match accept:NO" in lines[0]
        assert "extent:1.1001-1300 strand:1 comment:potential_processed_pseudogene accept:YES" in lines[1]

    def test_unspliced_best_means_no_candidates(self, classifier):
        records = [build_record("X", 95, 98, SINGLE_BLOCK), build_record("X", 95, 98, [(3001, 3300)])]
        verdicts = classifier.classify_group(records)

        assert not any(v.accepted for v in verdicts)
        assert verdicts[1].label == "2"

    def test_spliced_lower_rank_is_not_candidate(self, classifier):
        records = [build_record("X", 95, 99, SPLICED), build_record("X", 95, 98, [(1, 100), (501, 600)])]
        verdicts = classifier.classify_group(records)

        assert verdicts[1].label == "2"
        assert not verdicts[1].accepted

    def test_requires_exact_max_score(self, classifier):
        records = [build_record("X", 95, 99, SPLICED), build_record("X", 94, 99, SINGLE_BLOCK)]
        assert not classifier.classify_group(records)[1].accepted

    def test_relaxed_gate(self, classifier):
        # 95 >= 1.05 * 90 and 95 >= 0.97 * 97, though 95 < 97
        records = [build_record("X", 95, 99, SPLICED), build_record("X", 95, 95, SINGLE_BLOCK)]
        assert classifier.classify_group(records)[1].accepted

    def test_below_both_gates(self, classifier):
        records = [build_record("X", 92, 99, SPLICED), build_record("X", 92, 95, SINGLE_BLOCK)]
        assert not classifier.classify_group(records)[1].accepted


class TestPermissiveMode:

    def test_within_two_percent_of_best(self):
        classifier = PseudogeneClassifier(ClassifierOptions(best_in_genome=False))
        records = [build_record("X", 95, 99, SPLICED), build_record("X", 94, 98, SINGLE_BLOCK)]

        assert classifier.classify_group(records)[1].accepted

    def test_beyond_two_percent(self):
        classifier = PseudogeneClassifier(ClassifierOptions(best_in_genome=False))
        records = [build_record("X", 99, 99, SPLICED), build_record("X", 96, 98, SINGLE_BLOCK)]

        assert not classifier.classify_group(records)[1].accepted


class TestCandidates:

    def test_process_scenario(self, classifier, scenario_group):
        candidates = classifier.process(scenario_group)

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.source_id == "X"
        assert candidate.rank == 2
        assert candidate.coverage == 95
        assert not candidate.strand_corrected

    def test_strand_check_applied(self, scenario_group):
        checker = Mock()
        checker.check_strand.side_effect = lambda record: record.with_strand(-record.strand)
        classifier = PseudogeneClassifier(splice_checker=checker)

        candidates = classifier.process(scenario_group)

        assert checker.check_strand.call_count == 1
        assert candidates[0].strand_corrected
        assert candidates[0].record.strand == -1

    def test_remove_overlapping_keeps_best(self, classifier):
        candidates = classifier.make_candidates([
            Mock(record=build_record("X", 95, 98, [(1001, 1300)]), rank=2, label=POTENTIAL_PSEUDOGENE),
            Mock(record=build_record("Y", 97, 98, [(1201, 1500)]), rank=2, label=POTENTIAL_PSEUDOGENE),
            Mock(record=build_record("Z", 99, 98, [(1201, 1500)], strand=-1), rank=2,
                 label=POTENTIAL_PSEUDOGENE),
        ])
        kept = classifier.remove_overlapping(candidates)

        # Z is on the other strand, X overlaps the better Y
        assert sorted(c.source_id for c in kept) == ["Y", "Z"]

    def test_to_locus(self, classifier, scenario_group):
        candidate = classifier.process(scenario_group)[0]
        locus = candidate.to_locus()

        assert len(locus.transcripts) == 1
        assert len(locus.exons) == 1
        assert locus.exons[0].start == 1001
        assert locus.exons[0].supporting_features[0].hit_name == "X"

    def test_chromosome_coordinates(self, classifier):
        records = [build_record("X", 95, 99, SPLICED, region="2.1000001-2000000"),
                   build_record("X", 95, 98, [(101, 200)], region="2.1000001-2000000")]
        candidate = classifier.process(records)[0].to_chromosome_coordinates()

        assert candidate.record.seq_region_name == "2"
        assert (candidate.record.start, candidate.record.end) == (1000101, 1000200)


class TestContract:

    def test_record_without_feature_is_rejected(self):
        with pytest.raises(ValidationError):
            AlignmentRecord(source_id="X", blocks=[AlignedBlock(1, 10, 1)], seq_region_name="1")

    def test_mixed_strands_rejected(self):
        record = build_record("X", 95, 98, SPLICED)
        blocks = list(record.blocks)
        blocks[1] = blocks[1].flipped()
        with pytest.raises(ValidationError):
            AlignmentRecord(source_id="X", blocks=blocks, seq_region_name="1")

    def test_invalid_options(self):
        with pytest.raises(ValueError):
            ClassifierOptions(min_coverage=150).validate()

    def test_options_from_config(self):
        options = ClassifierOptions.from_config({'min_coverage': 80, 'best_in_genome': False})
        assert options.min_coverage == 80.0
        assert options.best_in_genome is False
        assert options.min_percent_id == 97.0
