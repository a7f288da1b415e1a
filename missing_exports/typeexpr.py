# missing_exports/typeexpr.py
"""
Type expressions for model files.

A compact TypeScript-like syntax, parsed with a Parsimonious PEG grammar
into :mod:`missing_exports.types` values::

    string | number                     union of intrinsics
    Map<string, Options>[]              generic reference, array suffix
    { level: Level; tags?: string[] }   object literal  -> inline reflection
    (opts: Options, ...rest: any[]) => void
                                        function type   -> inline reflection
    keyof Options                       type operator
    typeof defaults                     type query
    [Level, "low" | "high"]             tuple with literal types

Names are bound by a caller-supplied ``resolve(name, type_arguments)``
callback, which is how the loader turns ``Options`` into a reference to the
``Options`` symbol of the right program.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, List, NamedTuple, Optional, Type, TypeVar

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from missing_exports.compiler import ParameterDeclaration
from missing_exports.errors import MissingExportsError, TypeSyntaxError
from missing_exports.models import (
    DeclarationReflection,
    ParameterReflection,
    ReflectionKind,
    SignatureReflection,
)
from missing_exports.types import (
    ArrayType,
    IntersectionType,
    IntrinsicType,
    LiteralType,
    QueryType,
    ReferenceType,
    ReflectionType,
    SomeType,
    TupleType,
    TypeOperatorType,
    UnionType,
)

__all__ = [
    "TYPE_GRAMMAR",
    "INTRINSIC_NAMES",
    "TypeExpressionParser",
    "parse_type",
]

logger = logging.getLogger(__name__)

INTRINSIC_NAMES = frozenset({
    "any", "unknown", "never", "void", "undefined", "null", "object",
    "string", "number", "boolean", "symbol", "bigint", "this",
})

Resolver = Callable[[str, List[SomeType]], SomeType]
T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════
#  GRAMMAR
# ═══════════════════════════════════════════════════════════════════

TYPE_GRAMMAR = Grammar(r'''
    type_expr       = _ union _

    union           = intersection (_ "|" _ intersection)*
    intersection    = postfix (_ "&" _ postfix)*
    postfix         = primary array_suffix*
    array_suffix    = _ "[" _ "]"

    primary         = function_type / paren_type / tuple_type / object_type
                    / operator_type / query_type / string_lit / number_lit
                    / keyword_lit / reference

    function_type   = "(" _ param_list? _ ")" _ "=>" _ union
    param_list      = param (_ "," _ param)*
    param           = rest? identifier optional_mark? _ ":" _ union
    rest            = "..."
    optional_mark   = "?"

    paren_type      = "(" _ union _ ")"
    tuple_type      = "[" _ tuple_items? _ "]"
    tuple_items     = union (_ "," _ union)*

    object_type     = "{" _ members? _ "}"
    members         = member (_ member_sep _ member)* (_ member_sep)?
    member          = identifier optional_mark? _ ":" _ union
    member_sep      = ";" / ","

    operator_type   = type_operator __ postfix
    type_operator   = "keyof" / "readonly" / "unique"
    query_type      = "typeof" __ qualified_name

    string_lit      = ~r'"(?:[^"\\]|\\.)*"' / ~r"'(?:[^'\\]|\\.)*'"
    number_lit      = ~r"-?[0-9]+(\.[0-9]+)?"
    keyword_lit     = ("true" / "false" / "null") !ident_char

    reference       = qualified_name type_args?
    type_args       = _ "<" _ union (_ "," _ union)* _ ">"
    qualified_name  = identifier ("." identifier)*
    identifier      = ~r"[A-Za-z_$][A-Za-z0-9_$]*"
    ident_char      = ~r"[A-Za-z0-9_$]"

    _               = ~r"\s*"
    __              = ~r"\s+"
''')


class _Member(NamedTuple):
    name: str
    optional: bool
    type: SomeType


def _collect(items: Any, cls: Type[T]) -> List[T]:
    """Flatten nested child lists and keep instances of *cls*."""
    found: List[T] = []
    if isinstance(items, cls):
        found.append(items)
    elif isinstance(items, list):
        for item in items:
            found.extend(_collect(item, cls))
    return found


def _external(name: str, type_arguments: List[SomeType]) -> SomeType:
    reference = ReferenceType.to_external(name)
    reference.type_arguments = type_arguments
    return reference


# ═══════════════════════════════════════════════════════════════════
#  PARSE TREE → TYPES
# ═══════════════════════════════════════════════════════════════════

class _TypeBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into type values."""

    unwrapped_exceptions = (MissingExportsError,)

    def __init__(self, resolve: Resolver) -> None:
        self.resolve = resolve

    def generic_visit(self, node: Node, visited_children: list) -> Any:
        return visited_children or node

    def visit_type_expr(self, node, visited_children):
        return visited_children[1]

    def visit_union(self, node, visited_children):
        types = _collect(visited_children, SomeType)
        return types[0] if len(types) == 1 else UnionType(types)

    def visit_intersection(self, node, visited_children):
        types = _collect(visited_children, SomeType)
        return types[0] if len(types) == 1 else IntersectionType(types)

    def visit_postfix(self, node, visited_children):
        result = visited_children[0]
        for _ in node.children[1].children:
            result = ArrayType(result)
        return result

    def visit_primary(self, node, visited_children):
        return visited_children[0]

    # ── inline reflections ──────────────────────────────────────────

    def visit_function_type(self, node, visited_children):
        params = _collect(visited_children[:-1], ParameterDeclaration)
        declaration = DeclarationReflection("__type", ReflectionKind.TYPE_LITERAL)
        signature = SignatureReflection("__type", ReflectionKind.CALL_SIGNATURE, declaration)
        signature.type = visited_children[-1]
        if params:
            signature.parameters = []
            for param in params:
                reflection = ParameterReflection(param.name, signature)
                reflection.type = param.type
                reflection.is_optional = param.optional
                reflection.is_rest = param.rest
                signature.parameters.append(reflection)
        declaration.signatures = [signature]
        return ReflectionType(declaration)

    def visit_param(self, node, visited_children):
        return ParameterDeclaration(
            name=visited_children[1],
            type=visited_children[6],
            optional=node.children[2].text == "?",
            rest=node.children[0].text == "...",
        )

    def visit_object_type(self, node, visited_children):
        declaration = DeclarationReflection("__type", ReflectionKind.TYPE_LITERAL)
        for member in _collect(visited_children, _Member):
            prop = DeclarationReflection(member.name, ReflectionKind.PROPERTY)
            prop.type = member.type
            declaration.add_child(prop)
        return ReflectionType(declaration)

    def visit_member(self, node, visited_children):
        return _Member(
            name=visited_children[0],
            optional=node.children[1].text == "?",
            type=visited_children[5],
        )

    # ── composites ──────────────────────────────────────────────────

    def visit_paren_type(self, node, visited_children):
        return visited_children[2]

    def visit_tuple_type(self, node, visited_children):
        return TupleType(_collect(visited_children, SomeType))

    def visit_operator_type(self, node, visited_children):
        return TypeOperatorType(node.children[0].text, visited_children[2])

    def visit_query_type(self, node, visited_children):
        target = self.resolve(visited_children[2], [])
        if not isinstance(target, ReferenceType):
            target = ReferenceType.to_external(visited_children[2])
        return QueryType(target)

    # ── literals ────────────────────────────────────────────────────

    def visit_string_lit(self, node, visited_children):
        return LiteralType(re.sub(r"\\(.)", r"\1", node.text[1:-1]))

    def visit_number_lit(self, node, visited_children):
        text = node.text
        return LiteralType(float(text) if "." in text else int(text))

    def visit_keyword_lit(self, node, visited_children):
        return LiteralType({"true": True, "false": False, "null": None}[node.children[0].text])

    # ── names ───────────────────────────────────────────────────────

    def visit_reference(self, node, visited_children):
        name = visited_children[0]
        args = _collect(visited_children[1:], SomeType)
        if not args and name in INTRINSIC_NAMES:
            return IntrinsicType(name)
        return self.resolve(name, args)

    def visit_qualified_name(self, node, visited_children):
        return node.text

    def visit_identifier(self, node, visited_children):
        return node.text


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

class TypeExpressionParser:
    """Parse type expression strings, binding names through *resolve*."""

    def __init__(self, resolve: Optional[Resolver] = None) -> None:
        self._builder = _TypeBuilder(resolve or _external)

    def parse(self, text: str) -> SomeType:
        try:
            tree = TYPE_GRAMMAR.parse(text)
        except ParseError as exc:
            logger.debug("cannot parse type expression %r at %d", text, exc.pos)
            raise TypeSyntaxError(
                f"Invalid type expression {text!r}",
                text=text,
                position=exc.pos,
            ) from exc
        return self._builder.visit(tree)


def parse_type(text: str, resolve: Optional[Resolver] = None) -> SomeType:
    """Parse a single type expression (see the module docstring)."""
    return TypeExpressionParser(resolve).parse(text)
