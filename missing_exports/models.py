# missing_exports/models.py
"""
missing_exports.models
======================

The documentation tree: reflections produced by the converter and walked /
augmented by the missing-exports resolver.

Node variants
-------------
Every reflection class carries a ``variant`` tag used for dispatch:

``project``     the root, :class:`ProjectReflection`
``declaration`` modules, namespaces, classes, functions, properties, ...
``signature``   call / construct / index / accessor signatures
``param``       signature parameters
``typeParam``   type parameters of declarations and signatures

The project keeps two indexes: reflection id → reflection, and compiler
symbol → reflection.  The second one is what makes a
:class:`~missing_exports.types.ReferenceType` resolve.
"""

from __future__ import annotations

import enum
import itertools
from typing import (
    TYPE_CHECKING,
    ClassVar,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Union,
)

from missing_exports.types import ReflectionType, SomeType

if TYPE_CHECKING:
    from missing_exports.compiler import Symbol

__all__ = [
    "ReflectionKind",
    "Reflection",
    "ContainerReflection",
    "ProjectReflection",
    "DeclarationReflection",
    "SignatureReflection",
    "ParameterReflection",
    "TypeParameterReflection",
    "reset_reflection_ids",
]


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------

class ReflectionKind(enum.IntFlag):
    """Kind bits of a reflection (values follow TypeDoc)."""

    PROJECT               = 0x1
    MODULE                = 0x2
    NAMESPACE             = 0x4
    ENUM                  = 0x8
    ENUM_MEMBER           = 0x10
    VARIABLE              = 0x20
    FUNCTION              = 0x40
    CLASS                 = 0x80
    INTERFACE             = 0x100
    CONSTRUCTOR           = 0x200
    PROPERTY              = 0x400
    METHOD                = 0x800
    CALL_SIGNATURE        = 0x1000
    INDEX_SIGNATURE       = 0x2000
    CONSTRUCTOR_SIGNATURE = 0x4000
    PARAMETER             = 0x8000
    TYPE_LITERAL          = 0x10000
    TYPE_PARAMETER        = 0x20000
    ACCESSOR              = 0x40000
    GET_SIGNATURE         = 0x80000
    SET_SIGNATURE         = 0x100000
    TYPE_ALIAS            = 0x200000
    REFERENCE             = 0x400000

    # Grouped masks
    SIGNATURE = (
        CALL_SIGNATURE
        | INDEX_SIGNATURE
        | CONSTRUCTOR_SIGNATURE
        | GET_SIGNATURE
        | SET_SIGNATURE
    )
    CLASS_OR_INTERFACE = CLASS | INTERFACE
    SOME_MODULE = MODULE | NAMESPACE
    SOME_TYPE = INTERFACE | TYPE_LITERAL | TYPE_PARAMETER | TYPE_ALIAS

    @classmethod
    def from_label(cls, label: str) -> "ReflectionKind":
        """``"type alias"`` / ``"type-alias"`` / ``"TYPE_ALIAS"`` → member."""
        key = label.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown reflection kind: {label!r}") from None

    @property
    def label(self) -> str:
        return (self.name or str(int(self))).replace("_", " ").lower()


_next_id: Iterator[int] = itertools.count()


def reset_reflection_ids() -> None:
    """Restart reflection ids at 0 (the next reflection created gets id 0)."""
    global _next_id
    _next_id = itertools.count()


# ---------------------------------------------------------------------------
# Base reflection
# ---------------------------------------------------------------------------

class Reflection:
    """A node of the documentation tree."""

    variant: ClassVar[str] = ""

    def __init__(
        self,
        name: str,
        kind: ReflectionKind,
        parent: Optional["Reflection"] = None,
    ) -> None:
        self.id: int = next(_next_id)
        self.name = name
        self.kind = kind
        self.parent = parent

    def kind_of(self, kind: Union[ReflectionKind, int]) -> bool:
        return bool(self.kind & kind)

    @property
    def project(self) -> Optional["ProjectReflection"]:
        node: Optional[Reflection] = self
        while node is not None and not isinstance(node, ProjectReflection):
            node = node.parent
        return node

    def get_full_name(self, separator: str = ".") -> str:
        if self.parent is not None and not isinstance(self.parent, ProjectReflection):
            return self.parent.get_full_name(separator) + separator + self.name
        return self.name

    def traverse(self) -> Iterator["Reflection"]:
        """Yield every reflection directly owned by this one."""
        return iter(())

    def walk(self) -> Iterator["Reflection"]:
        """Yield this reflection and everything below it, depth first."""
        yield self
        for owned in self.traverse():
            yield from owned.walk()

    def get_child_by_name(self, name: Union[str, Sequence[str]]) -> Optional["Reflection"]:
        return None

    def find_reflection_by_name(self, name: Union[str, Sequence[str]]) -> Optional["Reflection"]:
        """Look *name* up among the children here, then up the parent chain."""
        names = name.split(".") if isinstance(name, str) else list(name)
        found = self.get_child_by_name(names)
        if found is not None:
            return found
        if self.parent is not None:
            return self.parent.find_reflection_by_name(names)
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} #{self.id} {self.kind.label} {self.name!r}>"


def _owned_by_type(type_: Optional[SomeType]) -> Iterator[Reflection]:
    if isinstance(type_, ReflectionType):
        yield type_.declaration


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

class ContainerReflection(Reflection):
    """A reflection that may hold child declarations."""

    def __init__(self, name: str, kind: ReflectionKind, parent: Optional[Reflection] = None) -> None:
        super().__init__(name, kind, parent)
        self.children: Optional[List[DeclarationReflection]] = None

    def add_child(self, child: "DeclarationReflection") -> "DeclarationReflection":
        if self.children is None:
            self.children = []
        child.parent = self
        self.children.append(child)
        return child

    def remove_child(self, child: Reflection) -> bool:
        if self.children and child in self.children:
            self.children.remove(child)
            return True
        return False

    def get_children_by_kind(self, kind: Union[ReflectionKind, int]) -> List["DeclarationReflection"]:
        return [c for c in (self.children or []) if c.kind_of(kind)]

    def get_child_by_name(self, name: Union[str, Sequence[str]]) -> Optional[Reflection]:
        names = name.split(".") if isinstance(name, str) else list(name)
        if not names:
            return None
        head, rest = names[0], names[1:]
        for child in self.children or []:
            if child.name == head:
                return child.get_child_by_name(rest) if rest else child
        return None

    def traverse(self) -> Iterator[Reflection]:
        return iter(self.children or [])


class ProjectReflection(ContainerReflection):
    """Root of the documentation tree and owner of the reflection indexes."""

    variant: ClassVar[str] = "project"

    def __init__(self, name: str) -> None:
        super().__init__(name, ReflectionKind.PROJECT)
        self.reflections: Dict[int, Reflection] = {self.id: self}
        self._symbol_to_id: Dict["Symbol", int] = {}
        self._id_to_symbols: Dict[int, List["Symbol"]] = {}

    # -- registry ----------------------------------------------------------

    def register_reflection(self, reflection: Reflection, symbol: Optional["Symbol"] = None) -> None:
        self.reflections[reflection.id] = reflection
        if symbol is not None:
            self._symbol_to_id[symbol] = reflection.id
            bound = self._id_to_symbols.setdefault(reflection.id, [])
            if symbol not in bound:
                bound.append(symbol)

    def get_reflection_by_id(self, id_: int) -> Optional[Reflection]:
        return self.reflections.get(id_)

    def get_reflection_from_symbol(self, symbol: "Symbol") -> Optional[Reflection]:
        id_ = self._symbol_to_id.get(symbol)
        if id_ is None:
            return None
        return self.reflections.get(id_)

    def get_symbols_from_reflection(self, reflection: Reflection) -> List["Symbol"]:
        return list(self._id_to_symbols.get(reflection.id, []))

    def get_reflections_by_kind(self, kind: Union[ReflectionKind, int]) -> List[Reflection]:
        return [r for r in self.reflections.values() if r.kind_of(kind)]

    def remove_reflection(self, reflection: Reflection) -> None:
        """Detach *reflection* from its parent and forget its whole subtree."""
        for node in list(reflection.walk()):
            self.reflections.pop(node.id, None)
            for symbol in self._id_to_symbols.pop(node.id, []):
                if self._symbol_to_id.get(symbol) == node.id:
                    del self._symbol_to_id[symbol]
        parent = reflection.parent
        if isinstance(parent, ContainerReflection):
            parent.remove_child(reflection)
        reflection.parent = None

    # -- lookup ------------------------------------------------------------

    def find_reflection_by_name(self, name: Union[str, Sequence[str]]) -> Optional[Reflection]:
        """Scope-chain lookup, falling back to the declarations that modules
        hold directly (first module in declaration order wins).

        Members of classes, interfaces and type literals, and anything
        inside a namespace, are only reachable through a dotted name.
        """
        names = name.split(".") if isinstance(name, str) else list(name)
        found = self.get_child_by_name(names)
        if found is not None or not names:
            return found

        for module in self.get_children_by_kind(ReflectionKind.MODULE):
            found = module.get_child_by_name(names)
            if found is not None:
                return found
        return None


# ---------------------------------------------------------------------------
# Declarations and their parts
# ---------------------------------------------------------------------------

class DeclarationReflection(ContainerReflection):
    """Modules, namespaces, classes, interfaces, functions, members, ..."""

    variant: ClassVar[str] = "declaration"

    def __init__(self, name: str, kind: ReflectionKind, parent: Optional[Reflection] = None) -> None:
        super().__init__(name, kind, parent)
        self.type: Optional[SomeType] = None
        self.default_value: Optional[str] = None
        self.type_parameters: Optional[List[TypeParameterReflection]] = None
        self.signatures: Optional[List[SignatureReflection]] = None
        self.index_signatures: Optional[List[SignatureReflection]] = None
        self.get_signature: Optional[SignatureReflection] = None
        self.set_signature: Optional[SignatureReflection] = None
        self.overwrites: Optional[SomeType] = None
        self.inherited_from: Optional[SomeType] = None
        self.implementation_of: Optional[SomeType] = None
        self.extended_types: Optional[List[SomeType]] = None
        self.extended_by: Optional[List[SomeType]] = None
        self.implemented_types: Optional[List[SomeType]] = None
        self.implemented_by: Optional[List[SomeType]] = None

    def traverse(self) -> Iterator[Reflection]:
        yield from self.type_parameters or []
        yield from _owned_by_type(self.type)
        yield from self.signatures or []
        yield from self.index_signatures or []
        if self.get_signature is not None:
            yield self.get_signature
        if self.set_signature is not None:
            yield self.set_signature
        yield from self.children or []


class SignatureReflection(Reflection):
    variant: ClassVar[str] = "signature"

    def __init__(self, name: str, kind: ReflectionKind, parent: Optional[Reflection] = None) -> None:
        super().__init__(name, kind, parent)
        self.parameters: Optional[List[ParameterReflection]] = None
        self.type_parameters: Optional[List[TypeParameterReflection]] = None
        self.type: Optional[SomeType] = None
        self.overwrites: Optional[SomeType] = None
        self.inherited_from: Optional[SomeType] = None
        self.implementation_of: Optional[SomeType] = None

    def traverse(self) -> Iterator[Reflection]:
        yield from self.type_parameters or []
        yield from self.parameters or []
        yield from _owned_by_type(self.type)


class ParameterReflection(Reflection):
    variant: ClassVar[str] = "param"

    def __init__(self, name: str, parent: Optional[Reflection] = None) -> None:
        super().__init__(name, ReflectionKind.PARAMETER, parent)
        self.type: Optional[SomeType] = None
        self.default_value: Optional[str] = None
        self.is_optional = False
        self.is_rest = False

    def traverse(self) -> Iterator[Reflection]:
        yield from _owned_by_type(self.type)


class TypeParameterReflection(Reflection):
    """A type parameter; ``type`` is its constraint."""

    variant: ClassVar[str] = "typeParam"

    def __init__(self, name: str, parent: Optional[Reflection] = None) -> None:
        super().__init__(name, ReflectionKind.TYPE_PARAMETER, parent)
        self.type: Optional[SomeType] = None
        self.default: Optional[SomeType] = None
