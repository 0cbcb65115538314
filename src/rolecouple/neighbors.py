"""
Spatial neighbor search over the features of a single contig.

Features are compared by contig-relative coordinates only; strand plays no
part in distance.
"""

from typing import List, NamedTuple, Optional, Sequence

import numpy as np


class Feature(NamedTuple):
    """A positioned annotation on a contig (1-based, inclusive coordinates)."""
    feature_id: str
    start: int
    end: int
    annotation: str = ''


def feature_distance(feat_a: Feature, feat_b: Feature) -> int:
    """
    Distance between two features: 0 if their spans overlap, otherwise the
    later start minus the earlier end.
    """
    return max(0, max(feat_a.start, feat_b.start) - min(feat_a.end, feat_b.end))


def sort_features(features: Sequence[Feature]) -> List[Feature]:
    """Order features by start coordinate, then end coordinate."""
    return sorted(features, key=lambda feat: (feat.start, feat.end))


def find_neighbors(features: Sequence[Feature], index: int, max_gap: int,
                   starts: Optional[np.ndarray] = None,
                   ends: Optional[np.ndarray] = None) -> List[Feature]:
    """
    Find every other feature of the contig within max_gap of features[index].

    Parameters
    ----------
    features : Sequence[Feature]
        Features of one contig
    index : int
        Position of the feature of interest in ``features``
    max_gap : int
        Maximum distance for two features to be neighbors
    starts, ends : np.ndarray, optional
        Pre-computed coordinate arrays for ``features``

    Returns
    -------
    List[Feature]
        Neighbors in the order they appear in ``features``.

    Notes
    -----
    The whole contig is examined because features are variable-length and
    may overlap; the distance is computed for all features at once.
    """
    if starts is None:
        starts = np.array([feat.start for feat in features], dtype=np.int64)
    if ends is None:
        ends = np.array([feat.end for feat in features], dtype=np.int64)
    focus = features[index]
    distances = np.maximum(0, np.maximum(starts, focus.start) - np.minimum(ends, focus.end))
    mask = distances <= max_gap
    mask[index] = False
    return [features[i] for i in np.flatnonzero(mask)]


class NeighborWindow:
    """
    Windowed neighbor queries over the features of one contig.

    The features are held in ascending start order so that the features
    following a given one and lying within the gap form a contiguous slice.
    """

    def __init__(self, features: Sequence[Feature]):
        self.features = sort_features(features)
        self.starts = np.array([feat.start for feat in self.features], dtype=np.int64)
        self.ends = np.array([feat.end for feat in self.features], dtype=np.int64)

    def __len__(self) -> int:
        return len(self.features)

    def within(self, index: int, max_gap: int) -> List[Feature]:
        """All neighbors of the feature at ``index``, before or after it."""
        return find_neighbors(self.features, index, max_gap, self.starts, self.ends)

    def following_bound(self, index: int, max_gap: int) -> int:
        """
        Index one past the last neighbor that follows the feature at ``index``.

        Every later feature starts at or after this one, so it is a neighbor
        iff its start is no more than ``end + max_gap``.
        """
        upper = int(np.searchsorted(self.starts, self.features[index].end + max_gap, side='right'))
        return max(upper, index + 1)

    def following(self, index: int, max_gap: int) -> List[Feature]:
        """Neighbors of the feature at ``index`` that come after it in start order."""
        return self.features[index + 1:self.following_bound(index, max_gap)]
