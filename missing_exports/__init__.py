"""
missing_exports — complete documentation trees with undocumented types
======================================================================

A documentation converter only documents what a package exports.  Types
that are used by exported declarations but never exported themselves leave
dangling references behind.  This package finds those references and
repairs the tree: a reference is either bound to a reflection that is
already documented under the same name, or a declaration is synthesised
for it inside a per-module ``internal`` namespace.

Modules
-------
models
    Reflection classes, ``ReflectionKind`` and the project indexes.
types
    Type values (``ReferenceType``, ``ReflectionType``, composites) and
    type visitors.
compiler
    ``Program`` / ``Symbol`` interface to the compiler front end.
context
    ``ConverterContext`` capability interface and its in-memory
    ``Context`` implementation.
application
    Option registry and converter event bus.
collector
    ``discover_missing_exports``: unresolved symbols below a reflection.
resolver
    The fixpoint resolution driver and the plugin ``load`` hook.
typeexpr, loader, serialization, main
    JSON model files, type expression grammar, JSON output and the CLI.

Quick start
-----------
>>> from missing_exports import Application, load, load_model
>>> app = Application()
>>> plugin = load(app)
>>> model = load_model(document, app)          # doctest: +SKIP
>>> app.resolve(model.context)                 # doctest: +SKIP
>>> print(plugin.last_report.summary())        # doctest: +SKIP
"""

from __future__ import annotations

import logging
from typing import List

__version__ = "0.2.0"
__license__ = "MIT"

from missing_exports.application import Application, Converter, Options
from missing_exports.collector import discover_missing_exports
from missing_exports.compiler import Program, Symbol, SymbolDeclaration
from missing_exports.context import Context, ConverterContext
from missing_exports.errors import (
    ContextError,
    MissingExportsError,
    ModelError,
    OptionError,
    TypeSyntaxError,
)
from missing_exports.loader import load_model, load_model_file
from missing_exports.models import (
    DeclarationReflection,
    ProjectReflection,
    Reflection,
    ReflectionKind,
)
from missing_exports.resolver import (
    MissingExportsPlugin,
    ResolutionReport,
    load,
    resolve_missing_exports,
)

__all__: List[str] = [
    "__version__",
    "Application",
    "Converter",
    "Options",
    "discover_missing_exports",
    "Program",
    "Symbol",
    "SymbolDeclaration",
    "Context",
    "ConverterContext",
    "ContextError",
    "MissingExportsError",
    "ModelError",
    "OptionError",
    "TypeSyntaxError",
    "load_model",
    "load_model_file",
    "DeclarationReflection",
    "ProjectReflection",
    "Reflection",
    "ReflectionKind",
    "MissingExportsPlugin",
    "ResolutionReport",
    "load",
    "resolve_missing_exports",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
