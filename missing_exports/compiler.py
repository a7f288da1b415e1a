# missing_exports/compiler.py
"""
The slice of a compiler front end the resolver depends on.

A :class:`Program` is one compilation (one package, one tsconfig).  It owns
a table of :class:`Symbol` objects.  Symbols compare by identity only: two
programs that each see a declaration named ``Options`` produce two distinct
symbols, and the resolver tracks them separately.

A symbol optionally carries a :class:`SymbolDeclaration`, the shape the
converter needs to turn it into a documented declaration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from missing_exports.models import ReflectionKind
from missing_exports.types import SomeType

__all__ = [
    "Program",
    "Symbol",
    "SymbolDeclaration",
    "SignatureDeclaration",
    "ParameterDeclaration",
    "TypeParameterDeclaration",
    "DEFAULT_EXPORT_NAME",
]

# Name the compiler gives to a module's default export.
DEFAULT_EXPORT_NAME = "default"


@dataclass
class TypeParameterDeclaration:
    name: str
    constraint: Optional[SomeType] = None
    default: Optional[SomeType] = None


@dataclass
class ParameterDeclaration:
    name: str
    type: Optional[SomeType] = None
    optional: bool = False
    rest: bool = False
    default_value: Optional[str] = None


@dataclass
class SignatureDeclaration:
    parameters: List[ParameterDeclaration] = field(default_factory=list)
    type_parameters: List[TypeParameterDeclaration] = field(default_factory=list)
    return_type: Optional[SomeType] = None


@dataclass
class SymbolDeclaration:
    """Everything the converter reads off a symbol's declaration."""

    type: Optional[SomeType] = None
    default_value: Optional[str] = None
    signatures: List[SignatureDeclaration] = field(default_factory=list)
    type_parameters: List[TypeParameterDeclaration] = field(default_factory=list)
    members: List["Symbol"] = field(default_factory=list)
    extends: List[SomeType] = field(default_factory=list)
    implements: List[SomeType] = field(default_factory=list)


class Symbol:
    """A compiler symbol.  Hashing and equality are by identity."""

    __slots__ = ("name", "kind", "program", "declaration")

    def __init__(
        self,
        name: str,
        kind: ReflectionKind,
        program: Optional["Program"] = None,
        declaration: Optional[SymbolDeclaration] = None,
    ) -> None:
        self.name = name
        self.kind = kind
        self.program = program
        self.declaration = declaration

    def __repr__(self) -> str:
        program = self.program.name if self.program is not None else "?"
        return f"<Symbol {self.name!r} ({self.kind.label}) in {program}>"


class Program:
    """One compilation and its table of top-level symbols."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._symbols: Dict[str, Symbol] = {}

    def add_symbol(self, symbol: Symbol) -> Symbol:
        symbol.program = self
        self._symbols[symbol.name] = symbol
        return symbol

    def get_symbol(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._symbols

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f"<Program {self.name!r} ({len(self)} symbols)>"
