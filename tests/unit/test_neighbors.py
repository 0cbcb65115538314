"""
Unit tests for the neighbor window scanner.
"""

from rolecouple.neighbors import Feature, NeighborWindow, feature_distance, find_neighbors, sort_features
from tests.fixtures.sample_data import SampleData


def _ids(features):
    return [feat.feature_id for feat in features]


class TestFeatureDistance:
    """Test the distance between two features."""

    def test_overlap_is_zero(self):
        assert feature_distance(Feature('a', 100, 300), Feature('b', 200, 500)) == 0
        assert feature_distance(Feature('a', 100, 1000), Feature('b', 200, 300)) == 0

    def test_gap_between_edges(self):
        assert feature_distance(Feature('a', 5000, 5100), Feature('b', 5150, 5200)) == 50
        assert feature_distance(Feature('a', 5250, 5400), Feature('b', 5401, 5450)) == 1

    def test_direction_independent(self):
        left, right = Feature('a', 10, 20), Feature('b', 90, 95)
        assert feature_distance(left, right) == feature_distance(right, left) == 70


class TestFindNeighbors:
    """Test neighbor queries over a whole contig."""

    def setup_method(self):
        self.features = SampleData.create_features(SampleData.FIRST_GENOME)

    def test_neighbors_on_both_sides(self):
        assert _ids(find_neighbors(self.features, 7, 100)) == ['fig|12345.6.peg.7', 'fig|12345.6.peg.9']
        assert _ids(find_neighbors(self.features, 0, 100)) == ['fig|12345.6.peg.2', 'fig|12345.6.peg.3']

    def test_isolated_feature(self):
        assert find_neighbors(self.features, 5, 100) == []

    def test_single_feature_contig(self):
        assert find_neighbors([Feature('a', 1, 100)], 0, 10000) == []

    def test_zero_gap_only_overlaps(self):
        assert _ids(find_neighbors(self.features, 1, 0)) == ['fig|12345.6.peg.1', 'fig|12345.6.peg.3']
        assert find_neighbors(self.features, 8, 0) == []

    def test_neighbor_symmetry(self):
        """Test that G is a neighbor of F iff F is a neighbor of G."""
        for gap in (0, 1, 50, 100, 1000):
            for i, feat in enumerate(self.features):
                for j, other in enumerate(self.features):
                    if i == j:
                        continue
                    forward = other in find_neighbors(self.features, i, gap)
                    backward = feat in find_neighbors(self.features, j, gap)
                    assert forward == backward


class TestNeighborWindow:
    """Test windowed neighbor queries."""

    def test_sorts_features(self):
        shuffled = list(reversed(SampleData.create_features(SampleData.FIRST_GENOME)))
        window = NeighborWindow(shuffled)
        assert [feat.start for feat in window.features] == sorted(feat.start for feat in shuffled)
        assert len(window) == 10

    def test_following_only_later_features(self):
        window = NeighborWindow(SampleData.create_features(SampleData.FIRST_GENOME))
        assert _ids(window.following(0, 100)) == ['fig|12345.6.peg.2', 'fig|12345.6.peg.3']
        assert _ids(window.following(2, 100)) == []
        assert _ids(window.following(6, 100)) == ['fig|12345.6.peg.8']
        assert _ids(window.following(8, 100)) == ['fig|12345.6.peg.10']
        assert window.following(9, 100) == []

    def test_following_covers_each_relation_once(self):
        """Test that forward windows enumerate every neighbor relation exactly once."""
        features = sort_features([
            Feature('long', 0, 10000), Feature('a', 100, 200), Feature('b', 5000, 5100),
            Feature('c', 5150, 5300), Feature('d', 10050, 10100), Feature('e', 20000, 20010),
        ])
        window = NeighborWindow(features)
        for gap in (0, 50, 100, 5000):
            forward = set()
            for i in range(len(window)):
                for other in window.following(i, gap):
                    forward.add(frozenset((window.features[i].feature_id, other.feature_id)))
            full = set()
            for i in range(len(window)):
                for other in window.within(i, gap):
                    full.add(frozenset((window.features[i].feature_id, other.feature_id)))
            assert forward == full
