"""
Utility functions for rolecouple.

This module provides the genome source: locating GenBank genome files in
genome directories and extracting per-contig feature lists from them.
"""

import gzip
import os
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, TextIO, Tuple

from Bio import SeqIO
from Bio.SeqFeature import FeatureLocation

from rolecouple.errors import ConfigurationError
from rolecouple.neighbors import Feature, sort_features

# Constants
GENBANK_SUFFIXES = ('.gbk', '.gb', '.gbff', '.genbank')
ANNOTATION_QUALIFIERS = ('product', 'function')
ID_QUALIFIERS = ('locus_tag', 'gene', 'protein_id')


def is_genbank_file(path: str) -> bool:
    """Check whether a file name carries a GenBank suffix (optionally gzipped)."""
    name = path[:-3] if path.endswith('.gz') else path
    return name.lower().endswith(GENBANK_SUFFIXES)


def open_genbank(path: str) -> TextIO:
    """Open a GenBank file for reading, decompressing it if it ends in '.gz'."""
    if path.endswith('.gz'):
        return gzip.open(path, 'rt')
    return open(path)


def find_genome_files(genome_dir: str) -> List[str]:
    """
    List the GenBank genome files of a genome directory.

    Parameters
    ----------
    genome_dir : str
        Directory holding one GenBank file per genome

    Returns
    -------
    List[str]
        Paths of the genome files, sorted by file name.

    Raises
    ------
    ConfigurationError
        If ``genome_dir`` is not a directory.
    """
    if not os.path.isdir(genome_dir):
        raise ConfigurationError(f'{genome_dir} is not a valid directory.')
    return [os.path.join(genome_dir, name) for name in sorted(os.listdir(genome_dir))
            if is_genbank_file(name) and os.path.isfile(os.path.join(genome_dir, name))]


def parse_cds_coord(location: FeatureLocation) -> Tuple[int, int, str]:
    """
    Parse a Biopython location into 1-based start, end and strand direction.

    Parameters
    ----------
    location : FeatureLocation
        Location of a SeqFeature, simple or compound

    Returns
    -------
    start : int
        Minimum start coordinate (1-based)
    end : int
        Maximum end coordinate
    direction : str
        Strand direction ('+' or '-')

    Notes
    -----
    A compound location that wraps the origin of a circular contig, such as
    join(5000..5400,1..100), would otherwise span the whole contig. For those
    only the part running up to the contig end is used, so the feature
    neighbors features near the end of the contig but not those near its start.
    """
    direction = '+' if (location.strand or 1) >= 0 else '-'
    if _wraps_origin(location, direction):
        tail = max(location.parts, key=lambda part: int(part.end))
        return int(tail.start) + 1, int(tail.end), direction
    start = int(location.start) + 1
    end = int(location.end)
    return start, end, direction


def _wraps_origin(location: FeatureLocation, direction: str) -> bool:
    # Parts are listed in transcription order: ascending on '+', descending on '-'.
    starts = [int(part.start) for part in location.parts]
    if len(starts) < 2:
        return False
    if direction == '+':
        return any(later < earlier for earlier, later in zip(starts, starts[1:]))
    return any(later > earlier for earlier, later in zip(starts, starts[1:]))


def _qualifier(feature, keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        values = feature.qualifiers.get(key)
        if values:
            return values[0]
    return None


def extract_contig_features(genome_file: str,
                            feature_types: Sequence[str] = ('CDS',)) -> Dict[str, List[Feature]]:
    """
    Extract the annotated features of every contig in a GenBank genome file.

    Parameters
    ----------
    genome_file : str
        Path to the genome in GenBank format (may be gzipped)
    feature_types : Sequence[str], optional
        Feature types to keep, by default ('CDS',)

    Returns
    -------
    Dict[str, List[Feature]]
        Contig ID to its features sorted by start coordinate, in file order.
        The annotation is the 'product' qualifier, else 'function', else empty.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or parsed as GenBank.
    """
    contigs: Dict[str, List[Feature]] = OrderedDict()
    try:
        with open_genbank(genome_file) as ogf:
            for rec in SeqIO.parse(ogf, 'genbank'):
                features = contigs.setdefault(rec.id, [])
                for feature in rec.features:
                    if feature.type not in feature_types:
                        continue
                    start, end, _ = parse_cds_coord(feature.location)
                    feature_id = _qualifier(feature, ID_QUALIFIERS)
                    if feature_id is None:
                        feature_id = f'{rec.id}_{len(features) + 1}'
                    annotation = _qualifier(feature, ANNOTATION_QUALIFIERS) or ''
                    features.append(Feature(feature_id, start, end, annotation))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f'Issues with parsing genome GenBank file {genome_file}: {e}')
    return OrderedDict((contig_id, sort_features(features)) for contig_id, features in contigs.items())
