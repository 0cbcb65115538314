"""
Role coupling counting and reporting for rolecouple.

This module scans genomes for spatially neighboring features, accumulates
role coupling counts into a tally, persists the tally, and reports the pairs
that meet the coupling thresholds, optionally against a baseline tally.
"""

import os
import sys
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from tqdm import tqdm

from rolecouple import util
from rolecouple.codec import load_tally, save_tally
from rolecouple.errors import ConfigurationError
from rolecouple.neighbors import Feature, NeighborWindow
from rolecouple.report import compare, plot_togetherness, report, write_report
from rolecouple.roles import RoleMap, parse_roles
from rolecouple.tally import CouplingTally

# Defaults
DEFAULT_GAP = 500
DEFAULT_MIN_TOGETHERNESS = 0.80
DEFAULT_MIN_COUNT = 10
DEFAULT_COMPARE_TOGETHERNESS = 0.70
DEFAULT_COMPARE_COUNT = 20


def count_contig(tally: CouplingTally, features: Sequence[Feature]) -> int:
    """
    Count the role couplings on one contig.

    Parameters
    ----------
    tally : CouplingTally
        Tally to accumulate into; its vocabulary and gap drive the scan
    features : Sequence[Feature]
        Features of the contig, in any order

    Returns
    -------
    int
        Number of features that carried at least one recognized role.

    Notes
    -----
    Each feature is paired only with the neighbors that follow it in start
    order, so every neighbor relationship between two features is recorded
    once.
    """
    window = NeighborWindow(features)
    feature_roles = [parse_roles(feat.annotation, tally.roles) for feat in window.features]
    scanned = 0
    for index, current_roles in enumerate(feature_roles):
        if not current_roles:
            continue
        neighbor_roles = []
        for roles in feature_roles[index + 1:window.following_bound(index, tally.gap)]:
            neighbor_roles.extend(roles)
        tally.record_scan(current_roles, neighbor_roles)
        scanned += 1
    return scanned


def count_couplings(tally: CouplingTally, contigs: Mapping[str, Sequence[Feature]]) -> int:
    """Count the role couplings of a genome given as contig ID to features."""
    return sum(count_contig(tally, features) for features in contigs.values())


def count_genome_directory(tally: CouplingTally, genome_dir: str, verbose: bool = True) -> int:
    """
    Count the role couplings of every GenBank genome in a directory.

    Parameters
    ----------
    tally : CouplingTally
        Tally to accumulate into
    genome_dir : str
        Directory holding one GenBank file per genome
    verbose : bool, optional
        Whether to show a progress bar on stderr, by default True

    Returns
    -------
    int
        Number of genomes processed.
    """
    genome_files = util.find_genome_files(genome_dir)
    if verbose and not genome_files:
        sys.stderr.write(f'Warning: No GenBank genome files were found in {genome_dir}.\n')
    for genome_file in tqdm(genome_files, desc='Genomes', disable=not verbose):
        contigs = util.extract_contig_features(genome_file)
        count_couplings(tally, contigs)
    return len(genome_files)


def _check_inputs(coupler_file: str, genome_dirs: Sequence[str], create: bool, role_file: Optional[str],
                  gap: int, compare_file: Optional[str], merge_files: Sequence[str],
                  outfile: Optional[str], plot_outfile: Optional[str]) -> None:
    if create:
        if role_file is None:
            raise ConfigurationError('Role file required in create mode.')
        if not os.path.isfile(role_file):
            raise ConfigurationError(f'Role file {role_file} does not exist.')
        if gap < 0:
            raise ConfigurationError(f'The gap must be a non-negative integer, not {gap}.')
    elif not os.path.isfile(coupler_file):
        raise ConfigurationError('Coupler file must exist unless create mode is specified.')
    for genome_dir in genome_dirs:
        if not os.path.isdir(genome_dir):
            raise ConfigurationError(f'{genome_dir} is not a valid directory.')
    if compare_file is not None and not os.path.isfile(compare_file):
        raise ConfigurationError(f'Comparison file {compare_file} is not found.')
    for merge_file in merge_files:
        if not os.path.isfile(merge_file):
            raise ConfigurationError(f'Merge file {merge_file} is not found.')
    for path, label in ((outfile, 'outfile'), (plot_outfile, 'plot outfile')):
        if path is not None and path != 'stdout' and os.path.isfile(path):
            raise ConfigurationError(f'The {label} must be a path to a file which does not already exist: {path}')


def role_coupling_main(coupler_file: str, genome_dirs: Sequence[str], create: bool = False,
                       role_file: Optional[str] = None, gap: int = DEFAULT_GAP,
                       min_togetherness: float = DEFAULT_MIN_TOGETHERNESS,
                       min_count: int = DEFAULT_MIN_COUNT, compare_file: Optional[str] = None,
                       compare_togetherness: float = DEFAULT_COMPARE_TOGETHERNESS,
                       compare_count: int = DEFAULT_COMPARE_COUNT,
                       merge_files: Iterable[str] = (), self_pairs: bool = False,
                       outfile: Optional[str] = None, plot_outfile: Optional[str] = None,
                       verbose: bool = True) -> Dict[str, Any]:
    """
    Build or extend a role coupling tally from genome directories and report couplings.

    In create mode a new tally is started from the role file and written to
    ``coupler_file``; otherwise ``coupler_file`` is loaded, the new genomes are
    counted into it, and it is written back.

    Parameters
    ----------
    coupler_file : str
        Path to the tally file
    genome_dirs : Sequence[str]
        Directories of GenBank genomes to count
    create : bool, optional
        Start a new tally instead of continuing an existing one
    role_file : str, optional
        Tab-delimited file of useful roles (create mode only)
    gap : int, optional
        Maximum distance between neighboring features (create mode only)
    min_togetherness : float, optional
        Minimum togetherness for a pair to be reported
    min_count : int, optional
        Minimum count for a pair to be reported
    compare_file : str, optional
        Tally file to validate the reported pairs against
    compare_togetherness : float, optional
        Togetherness a reported pair must reach in the comparison tally
    compare_count : int, optional
        Minimum role appearances in the comparison tally for a failure
    merge_files : Iterable[str], optional
        Tally files to fold into the tally before counting
    self_pairs : bool, optional
        Record a role paired with itself when it occurs on neighbors
    outfile : str, optional
        Report path. None or 'stdout' writes the report to stdout
    plot_outfile : str, optional
        Path of an SVG togetherness histogram. If not provided, no plot is made
    verbose : bool, optional
        Whether to print progress messages to stderr, by default True

    Returns
    -------
    Dict[str, Any]
        - 'tally': the saved CouplingTally
        - 'rows': the reported PairCount or ComparisonRow rows
        - 'total_count': number of reported couplings
        - 'failure_count': number of comparison failures (0 without comparison)
        - 'genome_count': number of genomes counted in this run

    Raises
    ------
    ConfigurationError
        If a required input is missing; raised before any genome is counted.
    CorruptStateError
        If the tally, comparison or merge file cannot be reconstructed.
    """
    genome_dirs = list(genome_dirs)
    merge_files = list(merge_files)
    _check_inputs(coupler_file, genome_dirs, create, role_file, gap, compare_file,
                  merge_files, outfile, plot_outfile)

    if create:
        if verbose:
            sys.stderr.write('Initializing new coupling counter.\n')
        tally = CouplingTally(RoleMap.load(role_file), gap, self_pairs)
    else:
        if verbose:
            sys.stderr.write(f'Loading coupling counter from {coupler_file}.\n')
        tally = load_tally(coupler_file, self_pairs)
    for merge_file in merge_files:
        if verbose:
            sys.stderr.write(f'Merging coupling counter from {merge_file}.\n')
        other = load_tally(merge_file)
        try:
            tally.merge(other)
        except ValueError as e:
            raise ConfigurationError(f'Merge file {merge_file} cannot be merged: {e}')

    genome_count = 0
    for genome_dir in genome_dirs:
        if verbose:
            sys.stderr.write(f'Processing genome directory {genome_dir}.\n')
        genome_count += count_genome_directory(tally, genome_dir, verbose=verbose)

    if verbose:
        sys.stderr.write(f'Saving coupling data to {coupler_file}.\n')
    save_tally(tally, coupler_file)

    comparator = None
    if compare_file is not None:
        if verbose:
            sys.stderr.write(f'Loading comparator from {compare_file}.\n')
        comparator = load_tally(compare_file)

    if verbose:
        sys.stderr.write('Writing output.\n')
    if comparator is not None:
        rows: List = compare(tally, comparator, compare_togetherness, compare_count,
                             min_togetherness, min_count)
    else:
        rows = report(tally, min_togetherness, min_count)

    if outfile and outfile != 'stdout':
        with open(outfile, 'w') as handle:
            failure_count = write_report(rows, handle, comparison=comparator is not None)
    else:
        failure_count = write_report(rows, sys.stdout, comparison=comparator is not None)

    if plot_outfile is not None:
        plot_togetherness(tally.sorted_pairs(0.0, min_count), plot_outfile, min_togetherness)

    if verbose and comparator is not None:
        sys.stderr.write(f'Failure count for comparison is {failure_count}.\n')
    if verbose:
        sys.stderr.write(f'{len(rows)} couplings found.\n')

    return {
        'tally': tally,
        'rows': rows,
        'total_count': len(rows),
        'failure_count': failure_count,
        'genome_count': genome_count,
    }
