# missing_exports/context.py
"""
Converter context: the capability interface the resolver works through.

:class:`ConverterContext` names every operation the resolution pass needs
from the surrounding pipeline (scope, lookup, creation, registration,
symbol conversion, removal, active program).  :class:`Context` implements
it over the in-memory tree in :mod:`missing_exports.models`, including the
symbol-to-declaration conversion a compiler front end would normally
provide.

Contexts are cheap: :meth:`Context.with_scope` returns a sibling context
that shares the project, the converter and the active program, and differs
only in the scope new declarations are created under.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from missing_exports.compiler import (
    Program,
    SignatureDeclaration,
    Symbol,
    SymbolDeclaration,
    TypeParameterDeclaration,
)
from missing_exports.errors import ContextError
from missing_exports.models import (
    ContainerReflection,
    DeclarationReflection,
    ParameterReflection,
    ProjectReflection,
    Reflection,
    ReflectionKind,
    SignatureReflection,
    TypeParameterReflection,
)

if TYPE_CHECKING:
    from missing_exports.application import Converter

__all__ = ["ConverterContext", "Context"]

logger = logging.getLogger(__name__)


class ConverterContext(abc.ABC):
    """Operations the missing-exports resolver requires from its host."""

    @property
    @abc.abstractmethod
    def project(self) -> ProjectReflection: ...

    @property
    @abc.abstractmethod
    def scope(self) -> Reflection: ...

    @property
    @abc.abstractmethod
    def program(self) -> Program:
        """The active program.  Raises :class:`ContextError` if none is."""

    @property
    @abc.abstractmethod
    def active_program(self) -> Optional[Program]: ...

    @abc.abstractmethod
    def set_active_program(self, program: Optional[Program]) -> None: ...

    @abc.abstractmethod
    def with_scope(self, scope: Reflection) -> "ConverterContext": ...

    @abc.abstractmethod
    def find_reflection_by_name(self, name: str) -> Optional[Reflection]: ...

    @abc.abstractmethod
    def create_declaration_reflection(
        self,
        kind: ReflectionKind,
        name: str,
        symbol: Optional[Symbol] = None,
    ) -> DeclarationReflection: ...

    @abc.abstractmethod
    def finalize_declaration_reflection(self, reflection: DeclarationReflection) -> None: ...

    @abc.abstractmethod
    def register_reflection(self, reflection: Reflection, symbol: Optional[Symbol]) -> None: ...

    @abc.abstractmethod
    def convert_symbol(self, symbol: Symbol) -> Optional[DeclarationReflection]: ...

    @abc.abstractmethod
    def remove_reflection(self, reflection: Reflection) -> None: ...


class _SharedState:
    """State common to a context and every context derived from it."""

    def __init__(self) -> None:
        self.program: Optional[Program] = None
        # scope id -> [(symbol, reflection), ...]
        self.bindings: Dict[int, List[Tuple[Symbol, Reflection]]] = {}


class Context(ConverterContext):
    """In-memory converter context."""

    def __init__(
        self,
        project: ProjectReflection,
        scope: Optional[Reflection] = None,
        converter: Optional["Converter"] = None,
        _shared: Optional[_SharedState] = None,
    ) -> None:
        self._project = project
        self._scope = scope if scope is not None else project
        self.converter = converter
        self._shared = _shared if _shared is not None else _SharedState()

    # -- scope and program --------------------------------------------------

    @property
    def project(self) -> ProjectReflection:
        return self._project

    @property
    def scope(self) -> Reflection:
        return self._scope

    @property
    def program(self) -> Program:
        if self._shared.program is None:
            raise ContextError(
                "Tried to access the active program when not converting a program"
            ).with_hint("call set_active_program() first")
        return self._shared.program

    @property
    def active_program(self) -> Optional[Program]:
        return self._shared.program

    def set_active_program(self, program: Optional[Program]) -> None:
        self._shared.program = program

    def with_scope(self, scope: Reflection) -> "Context":
        return Context(self._project, scope, self.converter, self._shared)

    # -- lookup -------------------------------------------------------------

    def find_reflection_by_name(self, name: str) -> Optional[Reflection]:
        return self._scope.find_reflection_by_name(name)

    def bindings_for(self, scope: Reflection) -> List[Tuple[Symbol, Reflection]]:
        """Symbol bindings registered while *scope* was the current scope."""
        return list(self._shared.bindings.get(scope.id, []))

    # -- creation and registration ------------------------------------------

    def create_declaration_reflection(
        self,
        kind: ReflectionKind,
        name: str,
        symbol: Optional[Symbol] = None,
    ) -> DeclarationReflection:
        if not isinstance(self._scope, ContainerReflection):
            raise ContextError(
                f"Cannot create {kind.label} {name!r} under {self._scope!r}: "
                "scope cannot hold children"
            )
        reflection = DeclarationReflection(name, kind)
        self._scope.add_child(reflection)
        self.register_reflection(reflection, symbol)
        return reflection

    def finalize_declaration_reflection(self, reflection: DeclarationReflection) -> None:
        logger.debug("created %r under %r", reflection, self._scope)
        if self.converter is not None:
            self.converter.trigger(self.converter.EVENT_CREATE_DECLARATION, self, reflection)

    def register_reflection(self, reflection: Reflection, symbol: Optional[Symbol]) -> None:
        self._project.register_reflection(reflection, symbol)
        if symbol is not None:
            self._shared.bindings.setdefault(self._scope.id, []).append((symbol, reflection))

    def remove_reflection(self, reflection: Reflection) -> None:
        removed = {node.id for node in reflection.walk()}
        self._project.remove_reflection(reflection)
        for scope_id in list(self._shared.bindings):
            if scope_id in removed:
                del self._shared.bindings[scope_id]
                continue
            self._shared.bindings[scope_id] = [
                (symbol, target)
                for symbol, target in self._shared.bindings[scope_id]
                if target.id not in removed
            ]

    # -- symbol conversion ---------------------------------------------------

    def convert_symbol(self, symbol: Symbol) -> Optional[DeclarationReflection]:
        """Convert *symbol* into a declaration under the current scope.

        Returns the new reflection, the already registered one if the symbol
        was converted before, or ``None`` if the symbol carries no
        declaration to convert.
        """
        program = self.program
        existing = self._project.get_reflection_from_symbol(symbol)
        if isinstance(existing, DeclarationReflection):
            return existing
        if symbol.declaration is None:
            logger.debug("%r has no declaration, skipping", symbol)
            return None
        if symbol.program is not None and symbol.program is not program:
            logger.debug("%r converted while %r is active", symbol, program)

        reflection = self.create_declaration_reflection(symbol.kind, symbol.name, symbol)
        self._populate(reflection, symbol.declaration)
        self.finalize_declaration_reflection(reflection)

        member_context = self.with_scope(reflection)
        for member in symbol.declaration.members:
            member_context.convert_symbol(member)
        return reflection

    def _populate(self, reflection: DeclarationReflection, declaration: SymbolDeclaration) -> None:
        reflection.type = declaration.type
        reflection.default_value = declaration.default_value
        if declaration.type_parameters:
            reflection.type_parameters = [
                self._type_parameter(tp, reflection) for tp in declaration.type_parameters
            ]
        if declaration.signatures:
            reflection.signatures = [
                self._signature(sig, reflection) for sig in declaration.signatures
            ]
        if declaration.extends:
            reflection.extended_types = list(declaration.extends)
        if declaration.implements:
            reflection.implemented_types = list(declaration.implements)

    def _signature(
        self,
        declaration: SignatureDeclaration,
        parent: DeclarationReflection,
    ) -> SignatureReflection:
        if parent.kind_of(ReflectionKind.CLASS):
            kind, name = ReflectionKind.CONSTRUCTOR_SIGNATURE, f"new {parent.name}"
        else:
            kind, name = ReflectionKind.CALL_SIGNATURE, parent.name
        signature = SignatureReflection(name, kind, parent)
        signature.type = declaration.return_type
        if declaration.type_parameters:
            signature.type_parameters = [
                self._type_parameter(tp, signature) for tp in declaration.type_parameters
            ]
        if declaration.parameters:
            signature.parameters = []
            for param in declaration.parameters:
                reflection = ParameterReflection(param.name, signature)
                reflection.type = param.type
                reflection.is_optional = param.optional
                reflection.is_rest = param.rest
                reflection.default_value = param.default_value
                self._project.register_reflection(reflection)
                signature.parameters.append(reflection)
        self._project.register_reflection(signature)
        return signature

    def _type_parameter(
        self,
        declaration: TypeParameterDeclaration,
        parent: Reflection,
    ) -> TypeParameterReflection:
        reflection = TypeParameterReflection(declaration.name, parent)
        reflection.type = declaration.constraint
        reflection.default = declaration.default
        self._project.register_reflection(reflection)
        return reflection

    def __repr__(self) -> str:
        return f"<Context scope={self._scope!r}>"
