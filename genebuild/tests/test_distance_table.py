#!/usr/bin/env python3
"""
Tests for the write-once distance table.
"""
import logging

import pytest

from genebuild.exceptions import ValidationError
from genebuild.models.distance import DistanceClass, DistanceEntry, DistanceTable, PairKey


class TestPairKey:

    def test_unordered(self):
        assert PairKey.of("geneA", "EST1") == PairKey.of("EST1", "geneA")
        assert hash(PairKey.of("x", "y")) == hash(PairKey.of("y", "x"))

    def test_other_member(self):
        key = PairKey.of("geneA", "EST1")
        assert key.other("geneA") == "EST1"
        assert "EST1" in key
        with pytest.raises(KeyError):
            key.other("geneB")


class TestDistanceTable:

    def test_store_and_get_either_order(self):
        table = DistanceTable()
        table.store("geneA", "EST1", 0.25)

        assert table.get("EST1", "geneA") == 0.25
        assert table.has("geneA", "EST1")
        assert len(table) == 1

    def test_second_write_keeps_first_value(self, caplog):
        table = DistanceTable()
        table.store("geneA", "EST1", 0.25)

        with caplog.at_level(logging.WARNING):
            entry = table.store("EST1", "geneA", 0.75)

        assert entry.distance == 0.25
        assert table.get("geneA", "EST1") == 0.25
        assert "already stored" in caplog.text

    def test_classes_are_independent(self):
        table = DistanceTable()
        table.store("geneA", "geneB", 1.0, DistanceClass.INFORMATIVE_SITES)
        table.store("geneA", "geneB", 0.1, DistanceClass.NUCLEOTIDE)

        assert table.get("geneA", "geneB", DistanceClass.INFORMATIVE_SITES) == 1.0
        assert table.get("geneA", "geneB", DistanceClass.NUCLEOTIDE) == 0.1
        assert len(list(table.entries(DistanceClass.NUCLEOTIDE))) == 1

    def test_missing_pair(self):
        assert DistanceTable().get("a", "b") is None

    def test_out_of_range_distance_rejected(self):
        with pytest.raises(ValidationError):
            DistanceEntry(PairKey.of("a", "b"), DistanceClass.NUCLEOTIDE, 1.5)

        with pytest.raises(ValidationError):
            DistanceTable().store("a", "b", -0.1)
