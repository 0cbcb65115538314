"""
Role vocabulary and functional annotation parsing for rolecouple.

This module provides the Role and RoleMap types and the parser that turns
a feature's free-text functional assignment into the set of recognized roles.
"""

import os
import re
from typing import Dict, Iterator, List, Optional, Set

from rolecouple.errors import ConfigurationError

# Constants
COMMENT_CHAR = '#'
ROLE_SPLITTER = re.compile(r'[/@]')
ID_MAX_LENGTH = 30
_NON_ID_CHARS = re.compile(r'[^A-Za-z0-9]')


class Role:
    """
    A recognized biological function label.

    Two roles are equal iff their IDs are equal; the name is descriptive only.
    """

    __slots__ = ('id', 'name')

    def __init__(self, role_id: str, name: str):
        self.id = role_id
        self.name = name

    def __eq__(self, other) -> bool:
        return isinstance(other, Role) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f'Role({self.id!r}, {self.name!r})'


class RoleMap:
    """
    Closed vocabulary of recognized roles, indexed by ID and by exact name.
    """

    def __init__(self):
        self._by_id: Dict[str, Role] = {}
        self._by_name: Dict[str, Role] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Role]:
        return iter(self._by_id.values())

    def __contains__(self, role) -> bool:
        if isinstance(role, Role):
            return role.id in self._by_id
        return role in self._by_id

    def add(self, role: Role) -> Role:
        """
        Store a role with a known ID, returning the stored instance.

        If a role with the same ID is already present it is kept and returned.
        """
        existing = self._by_id.get(role.id)
        if existing is not None:
            return existing
        self._by_id[role.id] = role
        self._by_name.setdefault(role.name, role)
        return role

    def register(self, *names: str) -> List[Role]:
        """
        Create roles for the given names, generating an ID for each new name.

        Parameters
        ----------
        *names : str
            Role names to register. A name already present returns its
            existing role.

        Returns
        -------
        List[Role]
            The roles, in the order of the names given.

        Notes
        -----
        The ID is the name with every non-alphanumeric character removed,
        truncated, followed by ``n<k>`` with ``k`` the smallest positive
        integer that gives an unused ID. "Role 1" becomes "Role1n1".
        """
        registered = []
        for name in names:
            role = self._by_name.get(name)
            if role is None:
                role = self.add(Role(self._new_id(name), name))
            registered.append(role)
        return registered

    def _new_id(self, name: str) -> str:
        base = _NON_ID_CHARS.sub('', name)[:ID_MAX_LENGTH]
        suffix = 1
        while f'{base}n{suffix}' in self._by_id:
            suffix += 1
        return f'{base}n{suffix}'

    def get_by_id(self, role_id: str) -> Optional[Role]:
        return self._by_id.get(role_id)

    def get_by_name(self, name: str) -> Optional[Role]:
        return self._by_name.get(name)

    @classmethod
    def load(cls, role_file: str) -> 'RoleMap':
        """
        Load a vocabulary from a tab-delimited role file.

        Parameters
        ----------
        role_file : str
            Path to a file with one ``role_id<TAB>role_name`` record per line.
            Blank lines and lines starting with '#' are skipped.

        Returns
        -------
        RoleMap
            The vocabulary defined by the file.

        Raises
        ------
        ConfigurationError
            If the file does not exist or a record has no role name.
        """
        if role_file is None or not os.path.isfile(role_file):
            raise ConfigurationError(f'Role file {role_file} does not exist.')
        role_map = cls()
        with open(role_file) as orf:
            for line_number, line in enumerate(orf, start=1):
                line = line.rstrip('\r\n')
                if not line.strip() or line.startswith(COMMENT_CHAR):
                    continue
                fields = line.split('\t')
                if len(fields) < 2 or not fields[0].strip():
                    raise ConfigurationError(
                        f'Role file {role_file} line {line_number} must contain a role ID and a role name.')
                role_map.add(Role(fields[0].strip(), fields[1].strip()))
        return role_map


def split_annotation(annotation: Optional[str]) -> List[str]:
    """
    Split a functional assignment into trimmed role-name segments.

    The comment introduced by '#' is dropped first, then the remaining text
    is split on '/' (alternate roles) and '@' (multifunctional boundary).
    Empty segments are discarded.
    """
    if not annotation:
        return []
    text = annotation.split(COMMENT_CHAR, 1)[0]
    segments = [segment.strip() for segment in ROLE_SPLITTER.split(text)]
    return [segment for segment in segments if segment]


def parse_roles(annotation: Optional[str], role_map: RoleMap) -> Set[Role]:
    """
    Extract the recognized roles from a feature's functional assignment.

    Parameters
    ----------
    annotation : str or None
        Raw functional annotation text of the feature
    role_map : RoleMap
        Vocabulary of recognized roles

    Returns
    -------
    Set[Role]
        Roles whose names appear as segments of the annotation. Unrecognized
        segments are ignored; malformed text yields an empty set.
    """
    found = set()
    for segment in split_annotation(annotation):
        role = role_map.get_by_name(segment)
        if role is not None:
            found.add(role)
    return found
