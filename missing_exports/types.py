# missing_exports/types.py
"""
Type values attached to reflections.

Every type is a small dataclass tagged with the TypeDoc-style ``type``
string (``"reference"``, ``"union"``, ...).  Two of them matter to the
missing-exports resolver:

``ReferenceType``
    Names a compiler symbol.  Its ``reflection`` is looked up lazily in the
    project's symbol registry, so registering a symbol anywhere in the
    project retroactively satisfies every reference that names it.
``ReflectionType``
    Wraps an inline declaration (object literal, function type).

All other shapes are containers of further types and are walked
generically by :class:`RecursiveTypeVisitor`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)

if TYPE_CHECKING:
    from missing_exports.compiler import Symbol
    from missing_exports.models import (
        DeclarationReflection,
        ProjectReflection,
        Reflection,
    )

__all__ = [
    "SomeType",
    "IntrinsicType",
    "LiteralType",
    "ReferenceType",
    "ReflectionType",
    "ArrayType",
    "UnionType",
    "IntersectionType",
    "TupleType",
    "NamedTupleMember",
    "OptionalType",
    "RestType",
    "ConditionalType",
    "IndexedAccessType",
    "InferredType",
    "MappedType",
    "PredicateType",
    "QueryType",
    "TypeOperatorType",
    "TemplateLiteralType",
    "UnknownType",
    "TypeVisitor",
    "RecursiveTypeVisitor",
]


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class SomeType:
    """Base class of all type values."""

    type: ClassVar[str] = "unknown"
    _visit_name: ClassVar[str] = "unknown"

    def visit(self, visitor: "TypeVisitor") -> Any:
        """Dispatch to ``visitor.visit_<tag>``."""
        return getattr(visitor, "visit_" + self._visit_name)(self)

    def children(self) -> Iterator["SomeType"]:
        """Directly nested types, in source order."""
        return iter(())


# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class IntrinsicType(SomeType):
    type: ClassVar[str] = "intrinsic"
    _visit_name: ClassVar[str] = "intrinsic"

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class LiteralType(SomeType):
    type: ClassVar[str] = "literal"
    _visit_name: ClassVar[str] = "literal"

    value: Union[str, int, float, bool, None]

    def __str__(self) -> str:
        if isinstance(self.value, str):
            return f'"{self.value}"'
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)


@dataclass(eq=False)
class UnknownType(SomeType):
    """A type the front end could not describe; kept as raw text."""

    type: ClassVar[str] = "unknown"
    _visit_name: ClassVar[str] = "unknown"

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class ReferenceType(SomeType):
    """A reference to a named type.

    ``target`` is either the id of a reflection (already resolved when the
    tree was built), a compiler :class:`~missing_exports.compiler.Symbol`
    (resolved through the project's symbol registry, if at all), or
    ``None`` for references to packages outside the documentation.
    """

    type: ClassVar[str] = "reference"
    _visit_name: ClassVar[str] = "reference"

    name: str
    target: Union[int, "Symbol", None] = None
    type_arguments: List[SomeType] = field(default_factory=list)
    project: Optional["ProjectReflection"] = field(default=None, repr=False)
    package: Optional[str] = None

    @classmethod
    def to_reflection(cls, reflection: "Reflection", project: "ProjectReflection") -> "ReferenceType":
        return cls(name=reflection.name, target=reflection.id, project=project)

    @classmethod
    def to_symbol(
        cls,
        symbol: "Symbol",
        project: "ProjectReflection",
        name: Optional[str] = None,
    ) -> "ReferenceType":
        return cls(name=name or symbol.name, target=symbol, project=project)

    @classmethod
    def to_external(cls, name: str, package: Optional[str] = None) -> "ReferenceType":
        return cls(name=name, target=None, package=package)

    @property
    def reflection(self) -> Optional["Reflection"]:
        """The documented reflection this reference points at, if any."""
        if self.project is None or self.target is None:
            return None
        if isinstance(self.target, int):
            return self.project.get_reflection_by_id(self.target)
        return self.project.get_reflection_from_symbol(self.target)

    def get_symbol(self) -> Optional["Symbol"]:
        if self.target is None or isinstance(self.target, int):
            return None
        return self.target

    def children(self) -> Iterator[SomeType]:
        return iter(self.type_arguments)

    def __str__(self) -> str:
        if self.type_arguments:
            args = ", ".join(str(t) for t in self.type_arguments)
            return f"{self.name}<{args}>"
        return self.name


@dataclass(eq=False)
class ReflectionType(SomeType):
    """An inline type described by its own declaration reflection."""

    type: ClassVar[str] = "reflection"
    _visit_name: ClassVar[str] = "reflection"

    declaration: "DeclarationReflection"

    def __str__(self) -> str:
        if self.declaration.signatures:
            return "Function"
        return "Object"


# ---------------------------------------------------------------------------
# Composites
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ArrayType(SomeType):
    type: ClassVar[str] = "array"
    _visit_name: ClassVar[str] = "array"

    element_type: SomeType

    def children(self) -> Iterator[SomeType]:
        yield self.element_type

    def __str__(self) -> str:
        if isinstance(self.element_type, (UnionType, IntersectionType)):
            return f"({self.element_type})[]"
        return f"{self.element_type}[]"


@dataclass(eq=False)
class UnionType(SomeType):
    type: ClassVar[str] = "union"
    _visit_name: ClassVar[str] = "union"

    types: List[SomeType]

    def children(self) -> Iterator[SomeType]:
        return iter(self.types)

    def __str__(self) -> str:
        return " | ".join(str(t) for t in self.types)


@dataclass(eq=False)
class IntersectionType(SomeType):
    type: ClassVar[str] = "intersection"
    _visit_name: ClassVar[str] = "intersection"

    types: List[SomeType]

    def children(self) -> Iterator[SomeType]:
        return iter(self.types)

    def __str__(self) -> str:
        return " & ".join(str(t) for t in self.types)


@dataclass(eq=False)
class TupleType(SomeType):
    type: ClassVar[str] = "tuple"
    _visit_name: ClassVar[str] = "tuple"

    elements: List[SomeType] = field(default_factory=list)

    def children(self) -> Iterator[SomeType]:
        return iter(self.elements)

    def __str__(self) -> str:
        return "[" + ", ".join(str(t) for t in self.elements) + "]"


@dataclass(eq=False)
class NamedTupleMember(SomeType):
    type: ClassVar[str] = "namedTupleMember"
    _visit_name: ClassVar[str] = "named_tuple_member"

    name: str
    is_optional: bool
    element: SomeType

    def children(self) -> Iterator[SomeType]:
        yield self.element

    def __str__(self) -> str:
        return f"{self.name}{'?' if self.is_optional else ''}: {self.element}"


@dataclass(eq=False)
class OptionalType(SomeType):
    type: ClassVar[str] = "optional"
    _visit_name: ClassVar[str] = "optional"

    element_type: SomeType

    def children(self) -> Iterator[SomeType]:
        yield self.element_type

    def __str__(self) -> str:
        return f"{self.element_type}?"


@dataclass(eq=False)
class RestType(SomeType):
    type: ClassVar[str] = "rest"
    _visit_name: ClassVar[str] = "rest"

    element_type: SomeType

    def children(self) -> Iterator[SomeType]:
        yield self.element_type

    def __str__(self) -> str:
        return f"...{self.element_type}"


@dataclass(eq=False)
class ConditionalType(SomeType):
    type: ClassVar[str] = "conditional"
    _visit_name: ClassVar[str] = "conditional"

    check_type: SomeType
    extends_type: SomeType
    true_type: SomeType
    false_type: SomeType

    def children(self) -> Iterator[SomeType]:
        yield self.check_type
        yield self.extends_type
        yield self.true_type
        yield self.false_type

    def __str__(self) -> str:
        return (
            f"{self.check_type} extends {self.extends_type} "
            f"? {self.true_type} : {self.false_type}"
        )


@dataclass(eq=False)
class IndexedAccessType(SomeType):
    type: ClassVar[str] = "indexedAccess"
    _visit_name: ClassVar[str] = "indexed_access"

    object_type: SomeType
    index_type: SomeType

    def children(self) -> Iterator[SomeType]:
        yield self.object_type
        yield self.index_type

    def __str__(self) -> str:
        return f"{self.object_type}[{self.index_type}]"


@dataclass(eq=False)
class InferredType(SomeType):
    type: ClassVar[str] = "inferred"
    _visit_name: ClassVar[str] = "inferred"

    name: str
    constraint: Optional[SomeType] = None

    def children(self) -> Iterator[SomeType]:
        if self.constraint is not None:
            yield self.constraint

    def __str__(self) -> str:
        if self.constraint is not None:
            return f"infer {self.name} extends {self.constraint}"
        return f"infer {self.name}"


@dataclass(eq=False)
class MappedType(SomeType):
    type: ClassVar[str] = "mapped"
    _visit_name: ClassVar[str] = "mapped"

    parameter: str
    parameter_type: SomeType
    template_type: SomeType
    name_type: Optional[SomeType] = None

    def children(self) -> Iterator[SomeType]:
        yield self.parameter_type
        yield self.template_type
        if self.name_type is not None:
            yield self.name_type

    def __str__(self) -> str:
        return f"{{ [{self.parameter} in {self.parameter_type}]: {self.template_type} }}"


@dataclass(eq=False)
class PredicateType(SomeType):
    type: ClassVar[str] = "predicate"
    _visit_name: ClassVar[str] = "predicate"

    name: str
    asserts: bool = False
    target_type: Optional[SomeType] = None

    def children(self) -> Iterator[SomeType]:
        if self.target_type is not None:
            yield self.target_type

    def __str__(self) -> str:
        prefix = "asserts " if self.asserts else ""
        if self.target_type is None:
            return f"{prefix}{self.name}"
        return f"{prefix}{self.name} is {self.target_type}"


@dataclass(eq=False)
class QueryType(SomeType):
    type: ClassVar[str] = "query"
    _visit_name: ClassVar[str] = "query"

    query_type: ReferenceType

    def children(self) -> Iterator[SomeType]:
        yield self.query_type

    def __str__(self) -> str:
        return f"typeof {self.query_type}"


@dataclass(eq=False)
class TypeOperatorType(SomeType):
    type: ClassVar[str] = "typeOperator"
    _visit_name: ClassVar[str] = "type_operator"

    operator: str
    target: SomeType

    def children(self) -> Iterator[SomeType]:
        yield self.target

    def __str__(self) -> str:
        return f"{self.operator} {self.target}"


@dataclass(eq=False)
class TemplateLiteralType(SomeType):
    type: ClassVar[str] = "templateLiteral"
    _visit_name: ClassVar[str] = "template_literal"

    head: str
    tail: List[Tuple[SomeType, str]] = field(default_factory=list)

    def children(self) -> Iterator[SomeType]:
        for type_, _ in self.tail:
            yield type_

    def __str__(self) -> str:
        parts = [self.head]
        for type_, text in self.tail:
            parts.append("${" + str(type_) + "}" + text)
        return "`" + "".join(parts) + "`"


# ---------------------------------------------------------------------------
# Visitors
# ---------------------------------------------------------------------------

class TypeVisitor:
    """Base class for type visitors.

    Each ``visit_X`` method corresponds to a type tag.  The defaults call
    ``generic_visit``, which does nothing; subclasses override only what
    they care about.
    """

    def visit(self, type_: SomeType) -> Any:
        return type_.visit(self)

    def generic_visit(self, type_: SomeType) -> Any:
        return None

    # --- Leaves ---

    def visit_intrinsic(self, type_: IntrinsicType) -> Any:
        return self.generic_visit(type_)

    def visit_literal(self, type_: LiteralType) -> Any:
        return self.generic_visit(type_)

    def visit_unknown(self, type_: UnknownType) -> Any:
        return self.generic_visit(type_)

    def visit_reference(self, type_: ReferenceType) -> Any:
        return self.generic_visit(type_)

    def visit_reflection(self, type_: ReflectionType) -> Any:
        return self.generic_visit(type_)

    # --- Composites ---

    def visit_array(self, type_: ArrayType) -> Any:
        return self.generic_visit(type_)

    def visit_union(self, type_: UnionType) -> Any:
        return self.generic_visit(type_)

    def visit_intersection(self, type_: IntersectionType) -> Any:
        return self.generic_visit(type_)

    def visit_tuple(self, type_: TupleType) -> Any:
        return self.generic_visit(type_)

    def visit_named_tuple_member(self, type_: NamedTupleMember) -> Any:
        return self.generic_visit(type_)

    def visit_optional(self, type_: OptionalType) -> Any:
        return self.generic_visit(type_)

    def visit_rest(self, type_: RestType) -> Any:
        return self.generic_visit(type_)

    def visit_conditional(self, type_: ConditionalType) -> Any:
        return self.generic_visit(type_)

    def visit_indexed_access(self, type_: IndexedAccessType) -> Any:
        return self.generic_visit(type_)

    def visit_inferred(self, type_: InferredType) -> Any:
        return self.generic_visit(type_)

    def visit_mapped(self, type_: MappedType) -> Any:
        return self.generic_visit(type_)

    def visit_predicate(self, type_: PredicateType) -> Any:
        return self.generic_visit(type_)

    def visit_query(self, type_: QueryType) -> Any:
        return self.generic_visit(type_)

    def visit_type_operator(self, type_: TypeOperatorType) -> Any:
        return self.generic_visit(type_)

    def visit_template_literal(self, type_: TemplateLiteralType) -> Any:
        return self.generic_visit(type_)


class RecursiveTypeVisitor(TypeVisitor):
    """Visitor that descends into every nested type.

    Override ``visit_X`` for the tags of interest and call
    ``generic_visit`` from the override to keep descending.  Inline
    reflections are *not* entered: their declarations are reflections,
    not types, and walking them is the caller's business.
    """

    def generic_visit(self, type_: SomeType) -> Any:
        for child in type_.children():
            child.visit(self)
        return None
