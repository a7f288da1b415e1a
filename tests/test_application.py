# tests/test_application.py
"""
Tests for option declarations and the converter event bus.
"""

import pytest

from missing_exports.application import (
    Application,
    Converter,
    OptionDeclaration,
    Options,
    ParameterType,
)
from missing_exports.errors import MissingExportsError, OptionError


@pytest.fixture
def options():
    opts = Options()
    opts.add_declaration(OptionDeclaration("name", "A name.", default_value="x"))
    opts.add_declaration(OptionDeclaration(
        "flag", "A flag.", type=ParameterType.BOOLEAN, default_value=False
    ))
    return opts


class TestOptions:

    def test_defaults(self, options):
        assert options.get_value("name") == "x"
        assert options.get_value("flag") is False
        assert not options.is_set("flag")

    def test_set_values(self, options):
        options.set_values({"name": "y", "flag": True})
        assert options.get_value("name") == "y"
        assert options.is_set("flag")

    def test_is_set_requires_declared_option(self, options):
        with pytest.raises(OptionError):
            options.is_set("missing")

    def test_unknown_option(self, options):
        with pytest.raises(OptionError) as info:
            options.set_value("nope", 1)
        assert info.value.option == "nope"

    def test_wrong_type(self, options):
        with pytest.raises(OptionError, match="expects a boolean"):
            options.set_value("flag", "yes")
        assert options.get_value("flag") is False

    def test_duplicate_declaration(self, options):
        with pytest.raises(OptionError, match="already declared"):
            options.add_declaration(OptionDeclaration("name", "again"))

    def test_bad_default_is_rejected(self, options):
        with pytest.raises(OptionError):
            options.add_declaration(OptionDeclaration(
                "count", "Count.", type=ParameterType.STRING, default_value=3
            ))

    def test_contains(self, options):
        assert "name" in options
        assert "other" not in options

    def test_option_error_is_a_missing_exports_error(self):
        assert issubclass(OptionError, MissingExportsError)


class TestConverterEvents:

    def test_priority_order(self):
        converter = Application().converter
        calls = []
        converter.on("evt", lambda: calls.append("low"), priority=-5)
        converter.on("evt", lambda: calls.append("first"))
        converter.on("evt", lambda: calls.append("high"), priority=100)
        converter.on("evt", lambda: calls.append("second"))
        converter.trigger("evt")
        assert calls == ["high", "first", "second", "low"]

    def test_arguments_are_forwarded(self):
        converter = Application().converter
        received = []
        converter.on("evt", lambda *args: received.append(args))
        converter.trigger("evt", 1, "two")
        assert received == [(1, "two")]

    def test_trigger_without_listeners(self):
        Application().converter.trigger("nothing")


class TestApplication:

    def test_create_project(self):
        app = Application()
        project, context = app.create_project("demo")
        assert project.name == "demo"
        assert context.project is project
        assert context.scope is project
        assert context.converter is app.converter

    def test_resolve_fires_resolve_begin(self):
        app = Application()
        _, context = app.create_project("demo")
        seen = []
        app.converter.on(Converter.EVENT_RESOLVE_BEGIN, seen.append)
        app.resolve(context)
        assert seen == [context]
