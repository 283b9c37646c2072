"""Conversion between role-name sets and the API's role reference lists."""

from collections.abc import Iterable

from .errors import RoleReferenceError
from .models import RoleRef


def encode_roles(names: Iterable[str]) -> list[RoleRef]:
    """Turn role names into role references.

    Duplicates collapse and the result is sorted so request payloads are
    stable. No names gives an empty list.
    """
    return [RoleRef(name=name) for name in sorted(set(names))]


def decode_roles(refs: Iterable[RoleRef]) -> list[str]:
    """Extract role names from role references.

    Raises:
        RoleReferenceError: If a reference carries no name
    """
    names = []
    for ref in refs:
        if ref.name is None:
            raise RoleReferenceError("role reference returned without a name")
        names.append(ref.name)
    return names
