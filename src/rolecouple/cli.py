#!/usr/bin/env python3
"""
Command line interface for counting functionally coupled roles in genomes.

The positional parameters are the coupler (tally) file and the genome
directories to process. With --create the coupler file is used for output
only; otherwise it is read to initialize the counts, the new genomes are
counted into it, and it is written back out.
"""

import argparse
import sys

from rolecouple.errors import ConfigurationError, CorruptStateError
from rolecouple.rolecouple import (
    DEFAULT_COMPARE_COUNT,
    DEFAULT_COMPARE_TOGETHERNESS,
    DEFAULT_GAP,
    DEFAULT_MIN_COUNT,
    DEFAULT_MIN_TOGETHERNESS,
    role_coupling_main,
)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Count functionally coupled roles across genomes and report the strongest couplings."
    )
    parser.add_argument("coupler_file", help="Path to the coupler (tally) file")
    parser.add_argument("genome_dirs", nargs="*", default=[], help="Directories of GenBank genomes to process")
    parser.add_argument("--create", action="store_true", help="Create a new coupler file instead of extending an existing one")
    parser.add_argument("-R", "--roles", dest="role_file", default=None, help="Tab-delimited file of useful roles (create only)")
    parser.add_argument("-g", "--gap", type=int, default=DEFAULT_GAP, help=f"Maximum distance between neighboring features (create only) [Default: {DEFAULT_GAP}]")
    parser.add_argument("-t", "--min-strength", dest="min_togetherness", type=float, default=DEFAULT_MIN_TOGETHERNESS, help=f"Minimum fraction of times coupled features are found together [Default: {DEFAULT_MIN_TOGETHERNESS}]")
    parser.add_argument("-m", "--min-count", type=int, default=DEFAULT_MIN_COUNT, help=f"Minimum number of times coupled features are found together [Default: {DEFAULT_MIN_COUNT}]")
    parser.add_argument("--compare", dest="compare_file", default=None, help="Compare results to the coupler in this file")
    parser.add_argument("-u", "--compare-strength", dest="compare_togetherness", type=float, default=DEFAULT_COMPARE_TOGETHERNESS, help=f"Minimum togetherness expected in the comparison [Default: {DEFAULT_COMPARE_TOGETHERNESS}]")
    parser.add_argument("-n", "--compare-count", type=int, default=DEFAULT_COMPARE_COUNT, help=f"Minimum role occurrences in the comparison for a pair to be in error [Default: {DEFAULT_COMPARE_COUNT}]")
    parser.add_argument("-M", "--merge", dest="merge_files", action="append", default=[], help="Coupler file to merge in before counting (repeatable)")
    parser.add_argument("--self-pairs", action="store_true", help="Count a role as coupled with itself when it occurs on neighboring features")
    parser.add_argument("-o", "--outfile", default=None, help="Report output file [Default: stdout]")
    parser.add_argument("-p", "--plot-outfile", default=None, help="Optional SVG histogram of pair togetherness")
    parser.add_argument("-v", "--verbose", action="store_true", help="Display progress on stderr")
    return parser


def main(argv=None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        role_coupling_main(
            coupler_file=args.coupler_file,
            genome_dirs=args.genome_dirs,
            create=args.create,
            role_file=args.role_file,
            gap=args.gap,
            min_togetherness=args.min_togetherness,
            min_count=args.min_count,
            compare_file=args.compare_file,
            compare_togetherness=args.compare_togetherness,
            compare_count=args.compare_count,
            merge_files=args.merge_files,
            self_pairs=args.self_pairs,
            outfile=args.outfile,
            plot_outfile=args.plot_outfile,
            verbose=args.verbose,
        )
    except ConfigurationError as e:
        sys.stderr.write(f"Error: {e}\n")
        sys.exit(1)
    except CorruptStateError as e:
        sys.stderr.write(f"Error: Unable to load coupler data. {e}\n")
        sys.exit(1)
    return 0


if __name__ == "__main__":
    sys.exit(main())
