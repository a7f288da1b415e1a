# missing_exports/collector.py
"""
Reference collector: find symbols referenced from a subtree that have no
documented reflection.

The walk is breadth-first over reflections.  Each reflection variant
declares, in :data:`_FIELD_WALKERS`, which of its fields hold nested
reflections (queued) and which hold types (inspected with
:class:`_MissingSymbolVisitor`).  Inside types only two shapes matter: an
unresolved reference contributes its symbol, an inline reflection
contributes its declaration to the work queue.

``extended_by`` and ``implemented_by`` are never walked.  They point back
at declarations that are part of the documentation by construction.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Dict, Iterable, Optional, Union

from missing_exports.compiler import Symbol
from missing_exports.models import (
    ContainerReflection,
    DeclarationReflection,
    ParameterReflection,
    Reflection,
    SignatureReflection,
    TypeParameterReflection,
)
from missing_exports.types import (
    RecursiveTypeVisitor,
    ReferenceType,
    ReflectionType,
    SomeType,
)

__all__ = ["SymbolSet", "discover_missing_exports"]

# Insertion-ordered set of symbols (dict keys, identity hashed).
SymbolSet = Dict[Symbol, None]


class _MissingSymbolVisitor(RecursiveTypeVisitor):

    def __init__(self, missing: SymbolSet, queue: Deque[Reflection]) -> None:
        self.missing = missing
        self.queue = queue

    def visit_reference(self, type_: ReferenceType) -> None:
        if type_.reflection is None:
            symbol = type_.get_symbol()
            if symbol is not None:
                self.missing[symbol] = None
        self.generic_visit(type_)

    def visit_reflection(self, type_: ReflectionType) -> None:
        self.queue.append(type_.declaration)


class _Walk:
    """Per-call helpers handed to the variant walkers."""

    def __init__(self, queue: Deque[Reflection], visitor: _MissingSymbolVisitor) -> None:
        self.queue = queue
        self.visitor = visitor

    def add(self, item: Union[Reflection, Iterable[Reflection], None]) -> None:
        if item is None:
            return
        if isinstance(item, Reflection):
            self.queue.append(item)
        else:
            self.queue.extend(item)

    def visit(self, type_: Optional[SomeType]) -> None:
        if type_ is not None:
            type_.visit(self.visitor)

    def visit_all(self, types: Optional[Iterable[SomeType]]) -> None:
        for type_ in types or ():
            type_.visit(self.visitor)


def _walk_project(node: ContainerReflection, walk: _Walk) -> None:
    walk.add(node.children)


def _walk_declaration(node: DeclarationReflection, walk: _Walk) -> None:
    walk.add(node.children)
    walk.visit(node.type)
    walk.add(node.type_parameters)
    walk.add(node.signatures)
    walk.add(node.index_signatures)
    walk.add(node.get_signature)
    walk.add(node.set_signature)
    walk.visit(node.overwrites)
    walk.visit(node.inherited_from)
    walk.visit(node.implementation_of)
    walk.visit_all(node.extended_types)
    walk.visit_all(node.implemented_types)


def _walk_signature(node: SignatureReflection, walk: _Walk) -> None:
    walk.add(node.parameters)
    walk.add(node.type_parameters)
    walk.visit(node.type)
    walk.visit(node.overwrites)
    walk.visit(node.inherited_from)
    walk.visit(node.implementation_of)


def _walk_parameter(node: ParameterReflection, walk: _Walk) -> None:
    walk.visit(node.type)


def _walk_type_parameter(node: TypeParameterReflection, walk: _Walk) -> None:
    walk.visit(node.type)
    walk.visit(node.default)


_FIELD_WALKERS: Dict[str, Callable[..., None]] = {
    "project": _walk_project,
    "declaration": _walk_declaration,
    "signature": _walk_signature,
    "param": _walk_parameter,
    "typeParam": _walk_type_parameter,
}


def discover_missing_exports(root: Reflection) -> SymbolSet:
    """Return the symbols referenced below *root* that resolve to nothing.

    The result is an insertion-ordered set (a dict with ``None`` values) so
    repeated calls over the same tree report symbols in the same order.
    The tree is not modified.
    """
    missing: SymbolSet = {}
    queue: Deque[Reflection] = deque([root])
    walk = _Walk(queue, _MissingSymbolVisitor(missing, queue))

    while queue:
        current = queue.popleft()
        walker = _FIELD_WALKERS.get(current.variant)
        if walker is not None:
            walker(current, walk)

    return missing
