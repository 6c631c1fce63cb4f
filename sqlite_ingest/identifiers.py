"""
Identifier Sanitizer

Maps arbitrary source labels (sheet names, XML tag names, key-row cells)
to identifiers that are safe to splice into SQL.
"""

import re
from typing import Iterable, List, Optional

_UNSAFE_CHARACTERS = re.compile(r'[^A-Za-z0-9_]')


def sanitize(label: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_]`` with ``_``."""
    return _UNSAFE_CHARACTERS.sub('_', str(label))


def table_name(label: str, prefix: Optional[str] = None) -> str:
    """Build a table name from a label, joined to the prefix with ``_``."""
    name = sanitize(label)
    if prefix:
        return f"{sanitize(prefix)}_{name}"
    return name


def is_blank(identifier: str) -> bool:
    """True for identifiers that carry no name at all ('' or only underscores)."""
    return not identifier.strip('_')


def deduplicate(names: Iterable[str], reserved: Iterable[str] = ('id',)) -> List[str]:
    """
    Make column names unique within one table.

    A name that was already used (or is reserved, like the synthesized
    ``id`` key) gets the first free numeric suffix: ``id`` -> ``id_2``.

    Args:
        names: Sanitized column names in declaration order.
        reserved: Names already taken by synthesized columns.

    Returns:
        The names with duplicates renamed, same length and order.
    """
    taken = {name.lower() for name in reserved}
    unique = []
    for name in names:
        candidate = name
        suffix = 2
        # SQLite compares column names case-insensitively
        while candidate.lower() in taken:
            candidate = f"{name}_{suffix}"
            suffix += 1
        taken.add(candidate.lower())
        unique.append(candidate)
    return unique
