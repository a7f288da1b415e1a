# missing_exports/loader.py
"""
Load a documentation model from a JSON document.

Document layout::

    {
      "name": "demo",
      "options": {"internalNamespace": "internal"},
      "programs": {
        "core": {
          "symbols": {
            "run":     {"kind": "function",
                        "signatures": [{"parameters": {"opts": "Options"},
                                        "returns": "void"}]},
            "Options": {"kind": "interface",
                        "members": {"level": "Level", "tags?": "string[]"}},
            "Level":   {"kind": "type alias", "type": "\"low\" | \"high\""}
          }
        }
      },
      "modules": [
        {"name": "core", "program": "core", "exports": ["run"]}
      ]
    }

Without ``modules``, a top-level ``program`` and ``exports`` pair is
converted straight into the project.  Type strings use the syntax of
:mod:`missing_exports.typeexpr`; names resolve to symbols of the program
they appear in, type parameter names and unknown names become references
to nothing documentable.  A symbol marked ``"opaque": true`` is declared
but never described, standing in for symbols the front end cannot convert.

Modules are created and exports converted through a
:class:`~missing_exports.context.Context`, so create-declaration listeners
(the missing-exports plugin among them) observe the conversion exactly as
they would a real one.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from missing_exports.application import Application
from missing_exports.compiler import (
    ParameterDeclaration,
    Program,
    SignatureDeclaration,
    Symbol,
    SymbolDeclaration,
    TypeParameterDeclaration,
)
from missing_exports.context import Context
from missing_exports.errors import ModelError, TypeSyntaxError
from missing_exports.models import ProjectReflection, ReflectionKind
from missing_exports.typeexpr import TypeExpressionParser
from missing_exports.types import ReferenceType, SomeType

__all__ = ["LoadedModel", "ModelLoader", "load_model", "load_model_file"]

logger = logging.getLogger(__name__)

# Kinds whose plain-string members are properties.
_MEMBER_KIND = ReflectionKind.PROPERTY


@dataclass
class LoadedModel:
    project: ProjectReflection
    context: Context
    programs: Dict[str, Program] = field(default_factory=dict)


def _split_marked_name(raw: str) -> Tuple[str, bool, bool]:
    """``"...rest"`` / ``"name?"`` → (name, optional, rest)."""
    rest = raw.startswith("...")
    name = raw[3:] if rest else raw
    optional = name.endswith("?")
    return (name[:-1] if optional else name), optional, rest


class _ProgramBuilder:
    """Builds one program's symbols in two passes: declare, then describe."""

    def __init__(self, name: str, spec: Mapping[str, Any], project: ProjectReflection) -> None:
        self.program = Program(name)
        self.project = project
        self.spec = spec
        self._pending: List[Tuple[Symbol, Mapping[str, Any], str]] = []
        self._type_params: FrozenSet[str] = frozenset()

    # -- pass 1 ---------------------------------------------------------------

    def declare(self) -> Program:
        symbols = self.spec.get("symbols", {})
        if not isinstance(symbols, Mapping):
            raise ModelError("'symbols' must be an object", path=f"programs.{self.program.name}")
        for name, spec in symbols.items():
            path = f"programs.{self.program.name}.symbols.{name}"
            symbol = self.program.add_symbol(self._new_symbol(name, spec, path))
            self._pending.append((symbol, spec, path))
        return self.program

    def _new_symbol(self, name: str, spec: Any, path: str) -> Symbol:
        if not isinstance(spec, Mapping):
            raise ModelError("symbol description must be an object", path=path)
        try:
            kind = ReflectionKind.from_label(spec.get("kind", "variable"))
        except ValueError as exc:
            raise ModelError(str(exc), path=path) from None
        return Symbol(name, kind, self.program)

    # -- pass 2 ---------------------------------------------------------------

    def describe(self) -> None:
        for symbol, spec, path in self._pending:
            if spec.get("opaque"):
                # The front end cannot describe it; conversion will skip it.
                continue
            symbol.declaration = self._describe_symbol(symbol, spec, path)
        self._pending.clear()

    def _describe_symbol(self, symbol: Symbol, spec: Mapping[str, Any], path: str) -> SymbolDeclaration:
        type_parameters = self._type_parameters(spec.get("typeParameters"), path)
        outer = self._type_params
        self._type_params = outer | {tp.name for tp in type_parameters}
        try:
            declaration = SymbolDeclaration(
                type=self._optional_type(spec.get("type"), f"{path}.type"),
                default_value=spec.get("value"),
                type_parameters=type_parameters,
                extends=[self._type(t, f"{path}.extends") for t in spec.get("extends", [])],
                implements=[self._type(t, f"{path}.implements") for t in spec.get("implements", [])],
            )
            for i, sig in enumerate(spec.get("signatures", [])):
                declaration.signatures.append(self._signature(sig, f"{path}.signatures[{i}]"))
            declaration.members = self._members(symbol, spec.get("members"), f"{path}.members")
        finally:
            self._type_params = outer
        return declaration

    def _members(self, owner: Symbol, members: Any, path: str) -> List[Symbol]:
        if members is None:
            return []
        result: List[Symbol] = []
        if owner.kind & ReflectionKind.ENUM:
            for name in members:
                result.append(Symbol(name, ReflectionKind.ENUM_MEMBER, self.program, SymbolDeclaration()))
            return result
        if not isinstance(members, Mapping):
            raise ModelError("'members' must be an object", path=path)
        for raw_name, spec in members.items():
            name, _, _ = _split_marked_name(raw_name)
            member_path = f"{path}.{raw_name}"
            if isinstance(spec, str):
                symbol = Symbol(name, _MEMBER_KIND, self.program)
                symbol.declaration = SymbolDeclaration(type=self._type(spec, member_path))
            else:
                symbol = self._new_symbol(name, spec, member_path)
                symbol.declaration = self._describe_symbol(symbol, spec, member_path)
            result.append(symbol)
        return result

    def _signature(self, spec: Any, path: str) -> SignatureDeclaration:
        if not isinstance(spec, Mapping):
            raise ModelError("signature must be an object", path=path)
        type_parameters = self._type_parameters(spec.get("typeParameters"), path)
        outer = self._type_params
        self._type_params = outer | {tp.name for tp in type_parameters}
        try:
            parameters = []
            for raw_name, type_text in (spec.get("parameters") or {}).items():
                name, optional, rest = _split_marked_name(raw_name)
                parameters.append(ParameterDeclaration(
                    name=name,
                    type=self._type(type_text, f"{path}.parameters.{raw_name}"),
                    optional=optional,
                    rest=rest,
                ))
            return SignatureDeclaration(
                parameters=parameters,
                type_parameters=type_parameters,
                return_type=self._optional_type(spec.get("returns"), f"{path}.returns"),
            )
        finally:
            self._type_params = outer

    def _type_parameters(self, spec: Any, path: str) -> List[TypeParameterDeclaration]:
        if not spec:
            return []
        if not isinstance(spec, Mapping):
            raise ModelError("'typeParameters' must be an object", path=path)
        names = frozenset(spec)
        outer = self._type_params
        self._type_params = outer | names
        try:
            result = []
            for name, value in spec.items():
                tp_path = f"{path}.typeParameters.{name}"
                if isinstance(value, Mapping):
                    constraint = self._optional_type(value.get("constraint"), tp_path)
                    default = self._optional_type(value.get("default"), tp_path)
                else:
                    constraint, default = self._optional_type(value, tp_path), None
                result.append(TypeParameterDeclaration(name, constraint, default))
            return result
        finally:
            self._type_params = outer

    # -- types ------------------------------------------------------------------

    def _resolve(self, name: str, type_arguments: List[SomeType]) -> SomeType:
        head = name.split(".")[0]
        symbol = None if head in self._type_params else self.program.get_symbol(name)
        if symbol is None:
            reference = ReferenceType.to_external(name)
        else:
            reference = ReferenceType.to_symbol(symbol, self.project)
        reference.type_arguments = type_arguments
        return reference

    def _type(self, text: Any, path: str) -> SomeType:
        if not isinstance(text, str):
            raise ModelError(f"type must be a string, got {type(text).__name__}", path=path)
        try:
            return TypeExpressionParser(self._resolve).parse(text)
        except TypeSyntaxError as exc:
            exc.path = path
            raise

    def _optional_type(self, text: Any, path: str) -> Optional[SomeType]:
        return None if text is None else self._type(text, path)


class ModelLoader:
    """Turns a model document into a converted project."""

    def __init__(self, app: Application) -> None:
        self.app = app

    def load(self, document: Any, source: str = "<model>") -> LoadedModel:
        if not isinstance(document, Mapping):
            raise ModelError("model document must be a JSON object", path=source)

        self.app.options.set_values(document.get("options", {}))
        project, context = self.app.create_project(document.get("name", "project"))
        model = LoadedModel(project, context)

        builders = []
        programs = document.get("programs", {})
        if not isinstance(programs, Mapping):
            raise ModelError("'programs' must be an object", path=source)
        for name, spec in programs.items():
            builder = _ProgramBuilder(name, spec, project)
            model.programs[name] = builder.declare()
            builders.append(builder)
        for builder in builders:
            builder.describe()

        modules = document.get("modules")
        if modules is None:
            program = self._program(model, document.get("program"), source)
            self._convert_exports(context, program, document.get("exports", []), source)
        else:
            for i, spec in enumerate(modules):
                self._convert_module(model, spec, f"{source}:modules[{i}]")

        logger.info(
            "loaded %r: %d program(s), %d reflection(s)",
            project.name, len(model.programs), len(project.reflections),
        )
        return model

    def _program(self, model: LoadedModel, name: Any, path: str) -> Program:
        if name is None and len(model.programs) == 1:
            return next(iter(model.programs.values()))
        try:
            return model.programs[name]
        except (KeyError, TypeError):
            raise ModelError(f"unknown program {name!r}", path=path) from None

    def _convert_module(self, model: LoadedModel, spec: Any, path: str) -> None:
        if not isinstance(spec, Mapping) or "name" not in spec:
            raise ModelError("module must be an object with a 'name'", path=path)
        program = self._program(model, spec.get("program"), path)
        context = model.context
        context.set_active_program(program)
        try:
            module = context.create_declaration_reflection(ReflectionKind.MODULE, spec["name"])
            context.finalize_declaration_reflection(module)
        finally:
            context.set_active_program(None)
        self._convert_exports(context.with_scope(module), program, spec.get("exports", []), path)

    def _convert_exports(self, context: Context, program: Program, exports: Any, path: str) -> None:
        context.set_active_program(program)
        try:
            for name in exports:
                symbol = program.get_symbol(name)
                if symbol is None:
                    raise ModelError(
                        f"export {name!r} is not a symbol of program {program.name!r}",
                        path=path,
                    )
                context.convert_symbol(symbol)
        finally:
            context.set_active_program(None)


def load_model(document: Any, app: Application, source: str = "<model>") -> LoadedModel:
    return ModelLoader(app).load(document, source)


def load_model_file(path: Union[str, Path], app: Application) -> LoadedModel:
    """Read and load a JSON model file."""
    p = Path(path)
    try:
        document = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ModelError(f"invalid JSON: {exc}", path=str(p)) from exc
    return ModelLoader(app).load(document, str(p))
