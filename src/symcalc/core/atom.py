"""symcalc.core.atom module.

This module defines the :class:`AtomType` and :class:`Atom` types that sit at
the leaves of every expression tree.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING as _TYPE_CHECKING
from typing import Generic as _Generic
from typing import Hashable as _Hashable
from typing import TypeVar as _TypeVar
from weakref import WeakValueDictionary as _WeakDict

__all__ = [
    "Atom",
    "AtomType",
]


AnyValue = _Hashable
_T = _TypeVar("_T", bound=AnyValue, covariant=True)


def _key(value: _Hashable) -> _Hashable:
    """Registry key for ``value``. Equal numbers of opposite sign differ."""
    if isinstance(value, (int, float)):
        return (value, math.copysign(1.0, value))
    return value


class AtomType(_Generic[_T]):
    """Kind of leaf in an expression tree.

    :ivar name: Name of this :class:`AtomType`.
    :ivar typ: The type of :attr:`Atom.value` for atoms of this kind.

    >>> from symcalc.core.atom import AtomType
    >>> Constant = AtomType('Constant', float)
    >>> Constant
    Constant
    >>> Constant.typ
    <class 'float'>
    >>> Constant(2.5)
    Constant(2.5)

    Each :class:`AtomType` keeps the atoms made from it so that calling it
    twice with equal values returns the same :class:`Atom`. Numbers are also
    keyed by their sign so ``-0.0`` and ``0.0`` give different atoms. An atom
    is forgotten once nothing else refers to it.

    See Also
    --------
    Atom: The leaves created by calling an :class:`AtomType`.
    """

    __slots__ = (
        "name",
        "typ",
        "_atoms",
    )

    name: str
    typ: type[_T]
    _atoms: _WeakDict[_Hashable, Atom[_T]]

    def __init__(self, name: str, typ: type[_T]):
        """Create a new kind of atom e.g. Constant or Linear."""
        self.name = name
        self.typ = typ
        self._atoms = _WeakDict()

    def __repr__(self) -> str:
        """Name of the AtomType."""
        return self.name

    def __call__(self, value: _T) -> Atom[_T]:  # type: ignore
        """Return the unique Atom of this type holding ``value``."""
        key = _key(value)
        atom = self._atoms.get(key)
        if atom is None:
            # setdefault so that concurrent callers agree on one object.
            atom = self._atoms.setdefault(key, Atom(self, value))
        return atom


class Atom(_Generic[_T]):
    """A leaf value tagged with its :class:`AtomType`.

    :ivar atom_type: The associated :class:`AtomType`.
    :ivar value: The value held by this leaf e.g. a float coefficient.

    Atoms should be created by calling an :class:`AtomType` which makes sure
    that equal atoms are the same object:

    >>> from symcalc.core.atom import AtomType
    >>> Linear = AtomType('Linear', float)
    >>> half_x = Linear(0.5)
    >>> half_x
    Linear(0.5)
    >>> half_x.value
    0.5
    >>> half_x is Linear(0.5)
    True
    >>> print(half_x)
    0.5
    """

    __slots__ = (
        "__weakref__",
        "atom_type",
        "value",
    )

    atom_type: AtomType[_T]
    value: _T

    def __init__(self, atom_type: AtomType[_T], value: _T):
        """Use ``atom_type(value)`` rather than calling this directly."""
        self.atom_type = atom_type
        self.value = value

    def __repr__(self) -> str:
        """Explicit representation as e.g. ``'Constant(1.0)'``."""
        return f"{self.atom_type}({self.value!r})"

    def __str__(self) -> str:
        """Bare value as a string."""
        return str(self.value)


if _TYPE_CHECKING:
    AnyAtom = Atom[_Hashable]
