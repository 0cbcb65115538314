"""
Role coupling tally: singleton and pairwise role counts with togetherness scoring.

A tally is a pure accumulator. Counts only grow; scanning the same genome
twice contributes its counts twice.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from rolecouple.errors import CorruptStateError
from rolecouple.roles import Role, RoleMap


class PairCount(NamedTuple):
    """One coupled role pair, with role1.id < role2.id unless the pair is a self-pair."""
    role1: Role
    role2: Role
    count: int
    togetherness: float


def _pair_key(id_a: str, id_b: str) -> Tuple[str, str]:
    return (id_a, id_b) if id_a <= id_b else (id_b, id_a)


def compute_togetherness(pair_count: int, count_a: int, count_b: int) -> float:
    """
    Inclusion-exclusion overlap ratio of a role pair.

    Parameters
    ----------
    pair_count : int
        Number of neighbor relationships recorded between the two roles
    count_a, count_b : int
        Occurrence counts of the two roles

    Returns
    -------
    float
        ``pair_count / (count_a + count_b - pair_count)``, or 0.0 when there
        is no pair count or the denominator is not positive. A negative
        denominator comes from inconsistent counts and also scores 0.0.
    """
    denominator = count_a + count_b - pair_count
    if pair_count <= 0 or denominator <= 0:
        return 0.0
    return min(1.0, pair_count / denominator)


class CouplingTally:
    """
    Occurrence and pair counters over a role vocabulary.

    Parameters
    ----------
    roles : RoleMap
        Vocabulary of recognized roles
    gap : int
        Maximum neighbor distance the tally is built with
    self_pairs : bool, optional
        Whether a role found on a neighbor of a feature carrying the same role
        is recorded as a pair with itself, by default False
    """

    def __init__(self, roles: Optional[RoleMap] = None, gap: int = 0, self_pairs: bool = False):
        self.roles = roles if roles is not None else RoleMap()
        self.gap = gap
        self.self_pairs = self_pairs
        self._occurrences: Dict[str, int] = defaultdict(int)
        self._pairs: Dict[Tuple[str, str], int] = defaultdict(int)

    def record_scan(self, focus_roles: Iterable[Role], neighbor_roles: Iterable[Role]) -> None:
        """
        Record one scanned feature and the roles found on its neighbors.

        Parameters
        ----------
        focus_roles : Iterable[Role]
            Recognized roles of the scanned feature. Each is counted once.
        neighbor_roles : Iterable[Role]
            Recognized roles of the neighboring features, duplicates allowed.
            Each is paired with every focus role.
        """
        focus_roles = set(focus_roles)
        if not focus_roles:
            return
        neighbor_roles = list(neighbor_roles)
        for role in focus_roles:
            self.roles.add(role)
            self._occurrences[role.id] += 1
        for role in focus_roles:
            for neighbor in neighbor_roles:
                if neighbor.id == role.id and not self.self_pairs:
                    continue
                self.roles.add(neighbor)
                self._pairs[_pair_key(role.id, neighbor.id)] += 1

    def add_role(self, role: Role, count: int) -> Role:
        """Register a role and add ``count`` to its occurrences."""
        role = self.roles.add(role)
        if count:
            self._occurrences[role.id] += count
        return role

    def add_pair(self, role_id1: str, role_id2: str, count: int) -> None:
        """
        Add ``count`` to a pair given by role IDs.

        Raises
        ------
        CorruptStateError
            If either ID is not in the tally's vocabulary.
        """
        for role_id in (role_id1, role_id2):
            if role_id not in self.roles:
                raise CorruptStateError(f'No role found with ID {role_id}.')
        if count:
            self._pairs[_pair_key(role_id1, role_id2)] += count

    def occurrence_count(self, role: Optional[Role]) -> int:
        if role is None:
            return 0
        return self._occurrences.get(role.id, 0)

    def pair_count(self, role_a: Optional[Role], role_b: Optional[Role]) -> int:
        if role_a is None or role_b is None:
            return 0
        return self._pairs.get(_pair_key(role_a.id, role_b.id), 0)

    def togetherness(self, role_a: Optional[Role], role_b: Optional[Role]) -> float:
        """Togetherness of two roles, 0.0 if the pair was never recorded."""
        return compute_togetherness(self.pair_count(role_a, role_b),
                                    self.occurrence_count(role_a),
                                    self.occurrence_count(role_b))

    def sorted_occurrences(self) -> List[Tuple[Role, int]]:
        """Roles with a non-zero count, most frequent first, ties by role ID."""
        counts = [(self.roles.get_by_id(role_id), count)
                  for role_id, count in self._occurrences.items() if count > 0]
        return sorted(counts, key=lambda item: (-item[1], item[0].id))

    def sorted_pairs(self, min_togetherness: float = 0.0, min_count: int = 0) -> List[PairCount]:
        """
        Pairs meeting both thresholds, most frequent first.

        Parameters
        ----------
        min_togetherness : float, optional
            Minimum togetherness a pair must reach, by default 0.0
        min_count : int, optional
            Minimum pair count, by default 0

        Returns
        -------
        List[PairCount]
            Sorted by descending count, then ascending (role1 ID, role2 ID).
        """
        results = []
        for (id1, id2), count in self._pairs.items():
            if count <= 0 or count < min_count:
                continue
            together = compute_togetherness(count, self._occurrences.get(id1, 0),
                                            self._occurrences.get(id2, 0))
            if together < min_togetherness:
                continue
            results.append(PairCount(self.roles.get_by_id(id1), self.roles.get_by_id(id2),
                                     count, together))
        results.sort(key=lambda pc: (-pc.count, pc.role1.id, pc.role2.id))
        return results

    def merge(self, other: 'CouplingTally') -> 'CouplingTally':
        """
        Fold another tally into this one by summing both maps key-wise.

        Raises
        ------
        ValueError
            If the two tallies were built with different gaps.
        """
        if other.gap != self.gap:
            raise ValueError(f'Cannot merge a tally with gap {other.gap} into one with gap {self.gap}.')
        for role in other.roles:
            self.roles.add(role)
        for role_id, count in other._occurrences.items():
            self._occurrences[role_id] += count
        for key, count in other._pairs.items():
            self._pairs[key] += count
        return self


def merge_tallies(tallies: Iterable[CouplingTally]) -> CouplingTally:
    """Combine tallies (e.g. per-worker shards) into a new tally."""
    tallies = list(tallies)
    if not tallies:
        raise ValueError('At least one tally is required for merging.')
    merged = CouplingTally(RoleMap(), tallies[0].gap, tallies[0].self_pairs)
    for tally in tallies:
        merged.merge(tally)
    return merged
