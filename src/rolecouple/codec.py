"""
Tab-delimited persistence for coupling tallies.

The file holds a header record with the gap, the role table (count, ID,
name) and the pair table (ID1, ID2, count, togetherness). The togetherness
column is for display and is recomputed from the counts on load.
"""

import gzip
import os
import stat
import tempfile
from typing import TextIO

from rolecouple.errors import ConfigurationError, CorruptStateError
from rolecouple.roles import Role, RoleMap
from rolecouple.tally import CouplingTally

# Constants
TITLE = 'Role-Coupling Database'
ROLE_HEADER = 'count\trole_id\trole_name'
PAIR_HEADER = 'role1_id\trole2_id\tcount\ttogetherness'
TOGETHERNESS_FORMAT = '{:.4f}'


def write_tally(tally: CouplingTally, handle: TextIO) -> None:
    """
    Write a tally to an open text handle.

    Every vocabulary role is written, zero counts included, most frequent
    first with ties ordered by role ID.
    """
    handle.write(f'{tally.gap}\t{TITLE}\n')
    handle.write(ROLE_HEADER + '\n')
    roles = sorted(tally.roles, key=lambda role: (-tally.occurrence_count(role), role.id))
    for role in roles:
        handle.write(f'{tally.occurrence_count(role)}\t{role.id}\t{role.name}\n')
    handle.write(PAIR_HEADER + '\n')
    for pair in tally.sorted_pairs():
        handle.write(f'{pair.role1.id}\t{pair.role2.id}\t{pair.count}\t'
                     f'{TOGETHERNESS_FORMAT.format(pair.togetherness)}\n')


def _parse_count(value: str, line_number: int) -> int:
    try:
        count = int(value)
    except ValueError:
        raise CorruptStateError(f'Line {line_number}: expected an integer count, found {value!r}.')
    if count < 0:
        raise CorruptStateError(f'Line {line_number}: negative count {count}.')
    return count


def read_tally(handle: TextIO, self_pairs: bool = False) -> CouplingTally:
    """
    Reconstruct a tally from an open text handle.

    Parameters
    ----------
    handle : TextIO
        Handle positioned at the start of a tally file
    self_pairs : bool, optional
        Self-pair setting for further counting into the loaded tally

    Returns
    -------
    CouplingTally
        Tally whose vocabulary is exactly the file's role table and whose gap
        is the stored gap.

    Raises
    ------
    CorruptStateError
        If the header is malformed, a row cannot be parsed, or a pair row names
        a role ID that is not in the role table.
    """
    lines = (line.rstrip('\r\n') for line in handle)
    numbered = ((number, line) for number, line in enumerate(lines, start=1) if line.strip())

    try:
        line_number, title_line = next(numbered)
    except StopIteration:
        raise CorruptStateError('Tally file is empty.')
    gap_field = title_line.split('\t', 1)[0]
    try:
        gap = int(gap_field)
    except ValueError:
        raise CorruptStateError(f'Line {line_number}: tally header must start with the gap, found {gap_field!r}.')
    tally = CouplingTally(RoleMap(), gap, self_pairs)

    line_number, header = next(numbered, (line_number + 1, None))
    if header is None or not header.startswith('count\t'):
        raise CorruptStateError(f'Line {line_number}: missing role table header.')

    in_pairs = False
    for line_number, line in numbered:
        fields = line.split('\t')
        if not in_pairs:
            if line.startswith('role1_id\t'):
                in_pairs = True
                continue
            if len(fields) < 3:
                raise CorruptStateError(f'Line {line_number}: role rows need a count, an ID and a name.')
            count = _parse_count(fields[0], line_number)
            tally.add_role(Role(fields[1], '\t'.join(fields[2:])), count)
        else:
            if len(fields) < 3:
                raise CorruptStateError(f'Line {line_number}: pair rows need two role IDs and a count.')
            count = _parse_count(fields[2], line_number)
            tally.add_pair(fields[0], fields[1], count)

    if not in_pairs:
        raise CorruptStateError('Tally file has no pair table header.')
    return tally


def _open_text(path: str, mode: str) -> TextIO:
    if path.endswith('.gz'):
        return gzip.open(path, mode + 't')
    return open(path, mode)


def _target_mode(path: str) -> int:
    """Permission bits for a saved tally: those of the file it replaces, else the umask default."""
    if os.path.exists(path):
        return stat.S_IMODE(os.stat(path).st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def save_tally(tally: CouplingTally, path: str) -> None:
    """
    Write a tally to a file, replacing it only once the write has completed.

    The data goes to a temporary file in the target directory which is then
    renamed over ``path``; a failure leaves any existing file untouched.
    The saved file keeps the permissions of the file it replaces, or gets the
    usual umask-derived permissions when it is new. Paths ending in '.gz'
    are gzip compressed.
    """
    target_dir = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix='.rolecouple-', dir=target_dir)
    os.close(fd)
    try:
        if path.endswith('.gz'):
            with gzip.open(tmp_path, 'wt') as handle:
                write_tally(tally, handle)
        else:
            with open(tmp_path, 'w') as handle:
                write_tally(tally, handle)
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def load_tally(path: str, self_pairs: bool = False) -> CouplingTally:
    """
    Read a tally file (optionally gzipped).

    Raises
    ------
    ConfigurationError
        If the file does not exist.
    CorruptStateError
        If the file cannot be reconstructed.
    """
    if path is None or not os.path.isfile(path):
        raise ConfigurationError(f'Tally file {path} does not exist.')
    with _open_text(path, 'r') as handle:
        return read_tally(handle, self_pairs)
