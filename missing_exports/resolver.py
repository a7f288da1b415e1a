# missing_exports/resolver.py
"""
missing_exports.resolver
========================

Resolution driver: make every type reference in the documentation resolve.

For each top-level module (or the project itself when there are none) the
driver asks the collector for unresolved symbols and then, per symbol:

* symbols named ``default`` are left alone;
* if a reflection with the same name is documented and owned directly by
  one of the modules, the symbol is registered against it (an alias, no
  new reflection);
* otherwise, unless synthesis is disabled, the symbol is converted into a
  new declaration inside the module's internal namespace.

Synthesised declarations may reference further undocumented symbols, so
the namespace is scanned again until no untried symbol remains.  Every
symbol is tried at most once per module, which bounds the loop by the
number of distinct symbols reachable from the tree.

Typical usage::

    from missing_exports.application import Application
    from missing_exports.resolver import load

    app = Application()
    plugin = load(app)
    ...                      # convert modules through a Context
    app.resolve(context)     # runs the driver
    print(plugin.last_report.summary())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, MutableMapping, Optional, Tuple, Union

from missing_exports.application import Application, OptionDeclaration, ParameterType
from missing_exports.collector import SymbolSet, discover_missing_exports
from missing_exports.compiler import DEFAULT_EXPORT_NAME, Program, Symbol
from missing_exports.context import ConverterContext
from missing_exports.models import (
    DeclarationReflection,
    ProjectReflection,
    Reflection,
    ReflectionKind,
)

__all__ = [
    "OPTION_INTERNAL_NAMESPACE",
    "OPTION_NO_MISSING_EXPORTS",
    "DEFAULT_INTERNAL_NAMESPACE",
    "ModuleResolution",
    "ResolutionReport",
    "resolve_missing_exports",
    "MissingExportsPlugin",
    "load",
]

logger = logging.getLogger(__name__)

OPTION_INTERNAL_NAMESPACE = "internalNamespace"
OPTION_NO_MISSING_EXPORTS = "noMissingExports"
DEFAULT_INTERNAL_NAMESPACE = "internal"

# Runs ahead of every other resolve-begin listener.
RESOLVE_PRIORITY = 1e9

KnownPrograms = MutableMapping[Reflection, Program]
Module = Union[DeclarationReflection, ProjectReflection]


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

@dataclass
class ModuleResolution:
    """What happened to one module during the pass."""

    module: Module
    aliased: List[Tuple[Symbol, Reflection]] = field(default_factory=list)
    synthesized: List[DeclarationReflection] = field(default_factory=list)
    skipped_defaults: List[Symbol] = field(default_factory=list)
    unresolved: List[Symbol] = field(default_factory=list)
    dropped: List[Symbol] = field(default_factory=list)
    rounds: int = 0
    namespace: Optional[DeclarationReflection] = None

    @property
    def changed(self) -> bool:
        return bool(self.aliased or self.synthesized)


@dataclass
class ResolutionReport:
    modules: List[ModuleResolution] = field(default_factory=list)

    @property
    def aliased_count(self) -> int:
        return sum(len(m.aliased) for m in self.modules)

    @property
    def synthesized_count(self) -> int:
        return sum(len(m.synthesized) for m in self.modules)

    @property
    def changed(self) -> bool:
        return any(m.changed for m in self.modules)

    def for_module(self, name: str) -> Optional[ModuleResolution]:
        for resolution in self.modules:
            if resolution.module.name == name:
                return resolution
        return None

    def summary(self) -> str:
        lines = []
        for m in self.modules:
            lines.append(
                f"{m.module.name}: {len(m.aliased)} aliased, "
                f"{len(m.synthesized)} synthesized, "
                f"{len(m.unresolved) + len(m.skipped_defaults) + len(m.dropped)} left unresolved "
                f"({m.rounds} round{'s' if m.rounds != 1 else ''})"
            )
        if not lines:
            lines.append("no missing exports")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

class _ModuleResolver:
    """Fixpoint resolution of a single module."""

    def __init__(
        self,
        context: ConverterContext,
        module: Module,
        modules: List[Module],
        program: Optional[Program],
        internal_namespace: str,
        no_missing_exports: bool,
    ) -> None:
        self.context = context
        self.module = module
        self.modules = modules
        self.program = program
        self.internal_namespace = internal_namespace
        self.no_missing_exports = no_missing_exports
        self.result = ModuleResolution(module)
        self._internal: Optional[Tuple[ConverterContext, DeclarationReflection]] = None

    def owning_module(self, reflection: Reflection) -> Optional[Module]:
        for mod in self.modules:
            for child in mod.get_children_by_kind(reflection.kind):
                if child.id == reflection.id:
                    return mod
        return None

    def internal_context(self) -> Tuple[ConverterContext, DeclarationReflection]:
        if self._internal is not None:
            return self._internal
        self.context.set_active_program(self.program)
        namespace = self.context.with_scope(self.module).create_declaration_reflection(
            ReflectionKind.NAMESPACE, self.internal_namespace
        )
        self.context.finalize_declaration_reflection(namespace)
        logger.debug("created internal namespace %r in %r", namespace.name, self.module.name)
        self._internal = (self.context.with_scope(namespace), namespace)
        return self._internal

    def resolve_symbol(self, symbol: Symbol) -> None:
        if symbol.name == DEFAULT_EXPORT_NAME:
            self.result.skipped_defaults.append(symbol)
            return

        found = self.context.find_reflection_by_name(symbol.name)
        if found is not None:
            owner = self.owning_module(found)
            if owner is None:
                # No module owns the reflection directly; the symbol stays
                # unresolved rather than being synthesised.
                logger.debug("dropping %r: no module owns %r", symbol, found)
                self.result.dropped.append(symbol)
                return
            self.context.with_scope(self.module).register_reflection(found, symbol)
            logger.debug("aliased %r to %r (owned by %r)", symbol, found, owner.name)
            self.result.aliased.append((symbol, found))
            return

        if self.no_missing_exports:
            self.result.unresolved.append(symbol)
            return

        internal, _ = self.internal_context()
        reflection = internal.convert_symbol(symbol)
        if reflection is not None:
            logger.debug("synthesized %r", reflection)
            self.result.synthesized.append(reflection)

    def run(self, missing: SymbolSet) -> ModuleResolution:
        tried: Dict[Symbol, None] = {}
        while missing:
            self.result.rounds += 1
            for symbol in missing:
                tried[symbol] = None
                self.resolve_symbol(symbol)

            if self.no_missing_exports or self._internal is None:
                missing = {}
            else:
                missing = discover_missing_exports(self._internal[1])
            for symbol in tried:
                missing.pop(symbol, None)

        if self._internal is not None:
            namespace = self._internal[1]
            if namespace.children:
                self.result.namespace = namespace
            else:
                self.context.remove_reflection(namespace)
        return self.result


def resolve_missing_exports(
    context: ConverterContext,
    known_programs: KnownPrograms,
    *,
    internal_namespace: str = DEFAULT_INTERNAL_NAMESPACE,
    no_missing_exports: bool = False,
) -> ResolutionReport:
    """Run one resolution pass over ``context.project``.

    *known_programs* maps module (or project) reflections to the program
    that produced them; it is consumed and cleared by the pass.
    """
    project = context.project
    modules: List[Module] = list(project.get_children_by_kind(ReflectionKind.MODULE))
    if not modules:
        modules.append(project)

    report = ResolutionReport()
    try:
        for mod in modules:
            missing = discover_missing_exports(mod)
            if not missing:
                continue
            logger.info("%s: %d missing symbol(s)", mod.name, len(missing))
            resolver = _ModuleResolver(
                context,
                mod,
                modules,
                known_programs.get(mod),
                internal_namespace,
                no_missing_exports,
            )
            try:
                report.modules.append(resolver.run(missing))
            finally:
                context.set_active_program(None)
    finally:
        known_programs.clear()

    logger.info(
        "missing exports: %d aliased, %d synthesized",
        report.aliased_count,
        report.synthesized_count,
    )
    return report


# ---------------------------------------------------------------------------
# Plugin
# ---------------------------------------------------------------------------

class MissingExportsPlugin:
    """Wires the driver into an :class:`Application`."""

    def __init__(self, app: Application) -> None:
        self.app = app
        self.known_programs: Dict[Reflection, Program] = {}
        self.last_report: Optional[ResolutionReport] = None

    def install(self) -> "MissingExportsPlugin":
        self.app.options.add_declaration(OptionDeclaration(
            name=OPTION_INTERNAL_NAMESPACE,
            help="Define the name of the namespace that internal symbols "
                 "which are not exported should be placed into.",
            type=ParameterType.STRING,
            default_value=DEFAULT_INTERNAL_NAMESPACE,
        ))
        self.app.options.add_declaration(OptionDeclaration(
            name=OPTION_NO_MISSING_EXPORTS,
            help="Only link references to types that are already documented; "
                 "never synthesize internal declarations.",
            type=ParameterType.BOOLEAN,
            default_value=False,
        ))

        converter = self.app.converter
        converter.on(converter.EVENT_CREATE_DECLARATION, self.on_create_declaration)
        converter.on(converter.EVENT_RESOLVE_BEGIN, self.on_resolve_begin, RESOLVE_PRIORITY)
        return self

    def on_create_declaration(self, context: ConverterContext, reflection: Reflection) -> None:
        scope = context.scope
        program = context.active_program
        if program is not None and scope.kind_of(ReflectionKind.PROJECT | ReflectionKind.MODULE):
            self.known_programs[scope] = program

    def on_resolve_begin(self, context: ConverterContext) -> None:
        options = self.app.options
        self.last_report = resolve_missing_exports(
            context,
            self.known_programs,
            internal_namespace=options.get_value(OPTION_INTERNAL_NAMESPACE),
            no_missing_exports=options.get_value(OPTION_NO_MISSING_EXPORTS),
        )


def load(app: Application) -> MissingExportsPlugin:
    """Plugin entry point: declare options and subscribe to converter events."""
    return MissingExportsPlugin(app).install()
