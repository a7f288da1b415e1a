# tests/conftest.py
"""
Shared fixtures: an application with the plugin installed and a small
builder for documentation trees.
"""

import pytest

from missing_exports.application import Application
from missing_exports.compiler import (
    ParameterDeclaration,
    Program,
    SignatureDeclaration,
    Symbol,
    SymbolDeclaration,
)
from missing_exports.models import ReflectionKind, reset_reflection_ids
from missing_exports.resolver import load
from missing_exports.types import ReferenceType


@pytest.fixture(autouse=True)
def _fresh_ids():
    reset_reflection_ids()
    yield


class TreeBuilder:
    """Builds programs, symbols and converted modules for a test project."""

    def __init__(self):
        self.app = Application()
        self.plugin = load(self.app)
        self.project, self.context = self.app.create_project("test-project")

    # -- compiler side ------------------------------------------------------

    def program(self, name="main"):
        return Program(name)

    def symbol(self, program, name, kind=ReflectionKind.INTERFACE, type=None, **declaration):
        symbol = Symbol(name, kind)
        symbol.declaration = SymbolDeclaration(type=type, **declaration)
        return program.add_symbol(symbol)

    def opaque(self, program, name, kind=ReflectionKind.INTERFACE):
        return program.add_symbol(Symbol(name, kind))

    def function(self, program, name, returns=None, **params):
        signature = SignatureDeclaration(
            parameters=[ParameterDeclaration(n, t) for n, t in params.items()],
            return_type=returns,
        )
        return self.symbol(program, name, ReflectionKind.FUNCTION, signatures=[signature])

    def ref(self, symbol):
        return ReferenceType.to_symbol(symbol, self.project)

    # -- conversion ---------------------------------------------------------

    def module(self, name, program, *exports):
        context = self.context
        context.set_active_program(program)
        try:
            module = context.create_declaration_reflection(ReflectionKind.MODULE, name)
            context.finalize_declaration_reflection(module)
            inner = context.with_scope(module)
            for symbol in exports:
                inner.convert_symbol(symbol)
        finally:
            context.set_active_program(None)
        return module

    def export_to_project(self, program, *exports):
        self.context.set_active_program(program)
        try:
            for symbol in exports:
                self.context.convert_symbol(symbol)
        finally:
            self.context.set_active_program(None)

    def resolve(self, **options):
        self.app.options.set_values(options)
        self.app.resolve(self.context)
        return self.plugin.last_report


@pytest.fixture
def tree():
    return TreeBuilder()


@pytest.fixture
def model_document():
    """A two-module model: ``api`` uses types only ``core`` documents or
    nobody documents."""
    return {
        "name": "demo",
        "programs": {
            "main": {
                "symbols": {
                    "run": {
                        "kind": "function",
                        "signatures": [
                            {"parameters": {"opts": "Options"}, "returns": "Result"}
                        ],
                    },
                    "Options": {
                        "kind": "interface",
                        "members": {"level": "Level", "tags?": "string[]"},
                    },
                    "Level": {"kind": "type alias", "type": "\"low\" | \"high\""},
                    "Result": {"kind": "interface", "members": {"ok": "boolean"}},
                },
            },
        },
        "modules": [
            {"name": "api", "program": "main", "exports": ["run"]},
            {"name": "core", "program": "main", "exports": ["Result"]},
        ],
    }
