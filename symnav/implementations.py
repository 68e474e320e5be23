"""Structural interface matching for Protocols and abstract base classes."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .cancellation import CancelToken, check_cancelled
from .errors import NotFoundError, WrongKindError
from .models import KIND_TYPE, Declaration
from .reports import Implementation
from .snapshot import Snapshot
from .symbol_index import SymbolIndex

logger = logging.getLogger(__name__)

_PROTOCOL_BASES = {"Protocol", "typing.Protocol", "typing_extensions.Protocol"}
_ABC_BASES = {"ABC", "abc.ABC", "ABCMeta", "abc.ABCMeta"}
_ABSTRACT_DECORATORS = {"abstractmethod", "abc.abstractmethod"}

# Methods that never take part in a structural shape
_IGNORED_METHODS = {"__init__", "__init_subclass__", "__class_getitem__", "__new__"}


def _own_methods(snapshot: Snapshot, cls: Declaration) -> Dict[str, Declaration]:
    scope = snapshot.class_scopes.get(cls)
    if scope is None:
        return {}
    return {
        name: decl for name, decl in scope.symbols.items()
        if decl.kind == "method" and name not in _IGNORED_METHODS
    }


def is_interface(snapshot: Snapshot, cls: Declaration) -> bool:
    """A class is an interface if it is a Protocol or a fully abstract ABC."""
    if cls.kind != KIND_TYPE:
        return False
    names = set(snapshot.base_names.get(cls, []))
    if names & _PROTOCOL_BASES:
        return True
    if names & _ABC_BASES or any(is_interface(snapshot, base) for base in snapshot.bases.get(cls, [])):
        methods = _own_methods(snapshot, cls)
        return bool(methods) and all(
            set(m.decorators) & _ABSTRACT_DECORATORS for m in methods.values()
        )
    return False


def method_shape(snapshot: Snapshot, cls: Declaration) -> Dict[str, str]:
    """Method name -> signature for *cls*, including inherited methods."""
    return {
        name: decl.signature
        for name, decl in snapshot.methods_of(cls).items()
        if name not in _IGNORED_METHODS
    }


def satisfies(candidate: Dict[str, str], interface: Dict[str, str]) -> bool:
    """Every interface method is present in *candidate* with an identical signature."""
    for name, signature in interface.items():
        if candidate.get(name) != signature:
            return False
    return True


class ImplementationMatcher:
    """Find classes and interfaces structurally compatible with an interface."""

    def __init__(self, snapshot: Snapshot, cancel: Optional[CancelToken] = None) -> None:
        self.snapshot = snapshot
        self.cancel = cancel

    def find_implementations(self, name: str) -> List[Implementation]:
        """Find implementations of the interface called *name*.

        Raises:
            NotFoundError: no declaration called *name*
            WrongKindError: *name* is not a Protocol or abstract interface
        """
        index = SymbolIndex(self.snapshot)
        try:
            target = index.resolve(name, KIND_TYPE)
        except NotFoundError:
            index.resolve(name)
            raise WrongKindError(f"{name!r} is not a class")
        if not is_interface(self.snapshot, target):
            raise WrongKindError(f"{name!r} is not an interface (Protocol or abstract base class)")

        wanted = method_shape(self.snapshot, target)
        found: List[Implementation] = []
        for cls in self.snapshot.iter_classes():
            check_cancelled(self.cancel)
            if cls is target:
                continue
            shape = method_shape(self.snapshot, cls)
            if not satisfies(shape, wanted):
                continue
            found.append(Implementation(
                type=cls.qualname,
                interface=target.qualname,
                package=cls.package,
                file=cls.file_path,
                line=cls.line,
                is_type=not is_interface(self.snapshot, cls),
            ))
        found.sort(key=lambda i: (not i.is_type, i.file, i.line))
        logger.debug("Found %d implementations of %s", len(found), target.qualname)
        return found
