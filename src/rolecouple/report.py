"""
Threshold reporting of coupled role pairs and validation against a baseline tally.
"""

import os
from typing import List, NamedTuple, Optional, Sequence, TextIO

import matplotlib.pyplot as plt
import seaborn as sns

from rolecouple.tally import CouplingTally, PairCount

# Constants
REPORT_HEADER = 'role_id1\trole_id2\tfraction\tcount'
COMPARE_HEADER = 'otherFrac\totherCount\totherFound\tfailure'
FRACTION_FORMAT = '{:.4f}'


class ComparisonRow(NamedTuple):
    """
    A reported pair with its standing in the baseline tally.

    The ``other_*`` fields are None when neither role occurs in the baseline.
    """
    pair: PairCount
    other_fraction: Optional[float] = None
    other_count: Optional[int] = None
    other_found: Optional[int] = None
    failure: bool = False

    @property
    def compared(self) -> bool:
        return self.other_fraction is not None


def report(tally: CouplingTally, min_togetherness: float, min_count: int) -> List[PairCount]:
    """Pairs of the tally meeting both thresholds, most frequent first."""
    return tally.sorted_pairs(min_togetherness, min_count)


def compare(primary: CouplingTally, baseline: CouplingTally,
            baseline_min_togetherness: float, baseline_min_count: int,
            min_togetherness: float = 0.0, min_count: int = 0) -> List[ComparisonRow]:
    """
    Check the pairs reported from one tally against a previously trusted tally.

    Parameters
    ----------
    primary : CouplingTally
        Newly computed tally
    baseline : CouplingTally
        Tally to validate against; its role set need not match
    baseline_min_togetherness : float
        Togetherness a reported pair is expected to reach in the baseline
    baseline_min_count : int
        Minimum number of baseline role appearances for a shortfall to count
        as a disagreement
    min_togetherness : float, optional
        Togetherness threshold for reporting from the primary tally
    min_count : int, optional
        Count threshold for reporting from the primary tally

    Returns
    -------
    List[ComparisonRow]
        One row per reported pair, in report order. A row is flagged as a
        failure iff the baseline togetherness is below
        ``baseline_min_togetherness`` and the two roles together appear at
        least ``baseline_min_count`` times in the baseline.
    """
    rows = []
    for pair in report(primary, min_togetherness, min_count):
        appearances = baseline.occurrence_count(pair.role1) + baseline.occurrence_count(pair.role2)
        if appearances == 0:
            rows.append(ComparisonRow(pair))
            continue
        other_fraction = baseline.togetherness(pair.role1, pair.role2)
        other_count = baseline.pair_count(pair.role1, pair.role2)
        failure = other_fraction < baseline_min_togetherness and appearances >= baseline_min_count
        rows.append(ComparisonRow(pair, other_fraction, other_count, appearances - other_count, failure))
    return rows


def _pair_fields(pair: PairCount) -> str:
    return f'{pair.role1.id}\t{pair.role2.id}\t{FRACTION_FORMAT.format(pair.togetherness)}\t{pair.count}'


def write_report(rows: Sequence, handle: TextIO, comparison: bool = False) -> int:
    """
    Write reported pairs as a tab-separated table.

    Parameters
    ----------
    rows : Sequence[PairCount] or Sequence[ComparisonRow]
        Rows from report() or compare()
    handle : TextIO
        Output handle
    comparison : bool, optional
        Whether the rows are comparison rows, adding the baseline columns

    Returns
    -------
    int
        Number of rows flagged as failures.
    """
    failure_count = 0
    if comparison:
        handle.write(f'{REPORT_HEADER}\t{COMPARE_HEADER}\n')
    else:
        handle.write(REPORT_HEADER + '\n')
    for row in rows:
        if not comparison:
            handle.write(_pair_fields(row) + '\n')
            continue
        if not row.compared:
            handle.write(_pair_fields(row.pair) + '\n')
            continue
        flag = 'Y' if row.failure else ''
        failure_count += int(row.failure)
        handle.write(f'{_pair_fields(row.pair)}\t{FRACTION_FORMAT.format(row.other_fraction)}\t'
                     f'{row.other_count}\t{row.other_found}\t{flag}\n')
    return failure_count


def plot_togetherness(pairs: Sequence[PairCount], plot_outfile: str, min_togetherness: Optional[float] = None) -> None:
    """
    Save a histogram of pair togetherness values as SVG.

    Parameters
    ----------
    pairs : Sequence[PairCount]
        Pairs to plot
    plot_outfile : str
        Path of the SVG file to write
    min_togetherness : float, optional
        Reporting threshold, drawn as a vertical line when given
    """
    plot_outfile = os.path.abspath(plot_outfile)
    sns.set_theme(style='white')
    plt.figure()
    if pairs:
        sns.histplot([pair.togetherness for pair in pairs], color='grey', alpha=0.5,
                     bins=20, binrange=(0.0, 1.0), label='Role pairs')
    if min_togetherness is not None:
        plt.axvline(min_togetherness, color='#2d5f8b', label='Togetherness threshold')
    plt.xlabel('Togetherness')
    plt.legend()
    plt.tight_layout()
    plt.savefig(plot_outfile, format='svg')
    plt.close()
