# tests/test_loader.py
"""
Tests for building a converted project from a JSON model document.
"""

import json

import pytest

from missing_exports.application import Application
from missing_exports.errors import ModelError, OptionError, TypeSyntaxError
from missing_exports.loader import load_model, load_model_file
from missing_exports.models import ReflectionKind
from missing_exports.resolver import OPTION_INTERNAL_NAMESPACE, load
from missing_exports.types import ReferenceType, UnionType


@pytest.fixture
def app():
    application = Application()
    load(application)
    return application


class TestModules:

    def test_modules_and_exports(self, app, model_document):
        model = load_model(model_document, app)
        project = model.project
        assert project.name == "demo"
        assert [m.name for m in project.children] == ["api", "core"]
        run = project.get_child_by_name("api.run")
        assert run.kind == ReflectionKind.FUNCTION
        assert project.get_child_by_name("core.Result.ok") is not None

    def test_references_bind_to_program_symbols(self, app, model_document):
        model = load_model(model_document, app)
        run = model.project.get_child_by_name("api.run")
        (signature,) = run.signatures
        opts = signature.parameters[0].type
        assert isinstance(opts, ReferenceType)
        assert opts.get_symbol() is model.programs["main"].get_symbol("Options")
        assert opts.reflection is None
        assert signature.type.reflection is model.project.get_child_by_name("core.Result")

    def test_plugin_sees_module_programs(self, model_document):
        plugin = load(Application())
        model = load_model(model_document, plugin.app)
        api = model.project.get_child_by_name("api")
        assert plugin.known_programs[api] is model.programs["main"]
        assert model.context.active_program is None

    def test_project_level_exports(self, app):
        document = {
            "programs": {"only": {"symbols": {"T": {"kind": "interface"}}}},
            "exports": ["T"],
        }
        model = load_model(document, app)
        assert model.project.get_child_by_name("T").kind == ReflectionKind.INTERFACE

    def test_options_are_applied(self, app, model_document):
        model_document["options"] = {OPTION_INTERNAL_NAMESPACE: "hidden"}
        load_model(model_document, app)
        assert app.options.get_value(OPTION_INTERNAL_NAMESPACE) == "hidden"


class TestSymbols:

    def _load(self, app, symbols, exports):
        document = {
            "programs": {"p": {"symbols": symbols}},
            "modules": [{"name": "m", "program": "p", "exports": exports}],
        }
        return load_model(document, app).project.get_child_by_name("m")

    def test_type_alias(self, app):
        module = self._load(app, {"Level": {"kind": "type alias", "type": '"a" | "b"'}}, ["Level"])
        level = module.get_child_by_name("Level")
        assert level.kind == ReflectionKind.TYPE_ALIAS
        assert isinstance(level.type, UnionType)

    def test_enum_members(self, app):
        module = self._load(app, {"Color": {"kind": "enum", "members": ["Red", "Green"]}}, ["Color"])
        color = module.get_child_by_name("Color")
        assert [c.name for c in color.children] == ["Red", "Green"]
        assert all(c.kind == ReflectionKind.ENUM_MEMBER for c in color.children)

    def test_nested_members(self, app):
        symbols = {
            "ns": {"kind": "namespace", "members": {
                "Inner": {"kind": "interface", "members": {"x": "number"}},
            }},
        }
        module = self._load(app, symbols, ["ns"])
        assert module.get_child_by_name("ns.Inner.x").kind == ReflectionKind.PROPERTY

    def test_signature_markers_and_type_parameters(self, app):
        symbols = {
            "map": {
                "kind": "function",
                "signatures": [{
                    "typeParameters": {"T": "object", "U": {"default": "T"}},
                    "parameters": {"items": "T[]", "fn?": "(item: T) => U", "...rest": "any[]"},
                    "returns": "U[]",
                }],
            },
        }
        module = self._load(app, symbols, ["map"])
        (signature,) = module.get_child_by_name("map").signatures
        assert [tp.name for tp in signature.type_parameters] == ["T", "U"]
        default = signature.type_parameters[1].default
        assert isinstance(default, ReferenceType) and default.target is None
        flags = [(p.name, p.is_optional, p.is_rest) for p in signature.parameters]
        assert flags == [("items", False, False), ("fn", True, False), ("rest", False, True)]

    def test_type_parameter_shadows_symbol(self, app):
        symbols = {
            "T": {"kind": "interface"},
            "box": {"kind": "type alias", "typeParameters": {"T": None}, "type": "T"},
            "plain": {"kind": "type alias", "type": "T"},
        }
        module = self._load(app, symbols, ["box", "plain"])
        assert module.get_child_by_name("box").type.get_symbol() is None
        assert module.get_child_by_name("plain").type.get_symbol() is not None

    def test_heritage(self, app):
        symbols = {
            "Base": {"kind": "class"},
            "Shape": {"kind": "interface"},
            "Circle": {"kind": "class", "extends": ["Base"], "implements": ["Shape"]},
        }
        module = self._load(app, symbols, ["Circle"])
        circle = module.get_child_by_name("Circle")
        assert circle.extended_types[0].name == "Base"
        assert circle.implemented_types[0].name == "Shape"

    def test_opaque_symbol_is_not_converted(self, app):
        module = self._load(app, {"Hidden": {"kind": "interface", "opaque": True}}, ["Hidden"])
        assert module.children is None


class TestErrors:

    def test_document_must_be_object(self, app):
        with pytest.raises(ModelError, match="JSON object"):
            load_model([], app)

    def test_unknown_kind(self, app):
        document = {"programs": {"p": {"symbols": {"X": {"kind": "gizmo"}}}}, "modules": []}
        with pytest.raises(ModelError) as info:
            load_model(document, app)
        assert info.value.path == "programs.p.symbols.X"

    def test_unknown_export(self, app):
        document = {
            "programs": {"p": {"symbols": {}}},
            "modules": [{"name": "m", "program": "p", "exports": ["Nope"]}],
        }
        with pytest.raises(ModelError, match="not a symbol of program 'p'"):
            load_model(document, app)

    def test_unknown_program(self, app):
        document = {"programs": {}, "modules": [{"name": "m", "program": "ghost"}]}
        with pytest.raises(ModelError, match="unknown program 'ghost'"):
            load_model(document, app)

    def test_bad_type_reports_path(self, app):
        document = {
            "programs": {"p": {"symbols": {"X": {"kind": "type alias", "type": "A |"}}}},
            "modules": [],
        }
        with pytest.raises(TypeSyntaxError) as info:
            load_model(document, app)
        assert info.value.path == "programs.p.symbols.X.type"
        assert str(info.value).startswith("programs.p.symbols.X.type: ")

    def test_bad_option_value(self, app, model_document):
        model_document["options"] = {OPTION_INTERNAL_NAMESPACE: 5}
        with pytest.raises(OptionError) as info:
            load_model(model_document, app)
        assert info.value.option == OPTION_INTERNAL_NAMESPACE


class TestFiles:

    def test_load_file(self, app, tmp_path, model_document):
        path = tmp_path / "model.json"
        path.write_text(json.dumps(model_document), encoding="utf-8")
        model = load_model_file(path, app)
        assert model.project.get_child_by_name("api.run") is not None

    def test_invalid_json(self, app, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ModelError, match="invalid JSON") as info:
            load_model_file(path, app)
        assert info.value.path == str(path)
