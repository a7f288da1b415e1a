# tests/test_resolver.py
"""
Tests for the resolution driver: aliasing, synthesis into the internal
namespace, the fixpoint loop and the plugin wiring.
"""

from missing_exports.application import Converter
from missing_exports.collector import discover_missing_exports
from missing_exports.compiler import DEFAULT_EXPORT_NAME, Symbol, SymbolDeclaration
from missing_exports.models import ReflectionKind
from missing_exports.resolver import (
    DEFAULT_INTERNAL_NAMESPACE,
    OPTION_INTERNAL_NAMESPACE,
    OPTION_NO_MISSING_EXPORTS,
    RESOLVE_PRIORITY,
    resolve_missing_exports,
)
from missing_exports.serialization import project_to_dict


def _namespaces(module):
    return module.get_children_by_kind(ReflectionKind.NAMESPACE)


class TestAliasing:

    def test_reference_to_type_documented_in_other_module(self, tree):
        lib = tree.program("lib")
        app = tree.program("app")
        lib_t = tree.symbol(lib, "T")
        b = tree.module("b", lib, lib_t)

        # The app program sees its own symbol for T, which nobody exports.
        app_t = tree.symbol(app, "T")
        f = tree.function(app, "f", returns=tree.ref(app_t))
        a = tree.module("a", app, f)

        report = tree.resolve()

        documented_t = b.get_child_by_name("T")
        assert tree.project.get_reflection_from_symbol(app_t) is documented_t
        assert a.get_child_by_name("f").signatures[0].type.reflection is documented_t
        assert _namespaces(a) == []
        assert tree.context.bindings_for(a)[-1] == (app_t, documented_t)

        resolution = report.for_module("a")
        assert resolution.aliased == [(app_t, documented_t)]
        assert resolution.synthesized == []

    def test_aliasing_never_duplicates(self, tree):
        lib, app = tree.program("lib"), tree.program("app")
        tree.module("b", lib, tree.symbol(lib, "T"))
        app_t = tree.symbol(app, "T")
        tree.module("a", app, tree.function(app, "f", returns=tree.ref(app_t)))
        before = len(tree.project.get_reflections_by_kind(ReflectionKind.INTERFACE))

        tree.resolve()

        interfaces = tree.project.get_reflections_by_kind(ReflectionKind.INTERFACE)
        assert len(interfaces) == before == 1

    def test_unowned_reflection_drops_the_symbol(self, tree):
        lib, app = tree.program("lib"), tree.program("app")
        config_module = tree.module("Config", lib)
        app_config = tree.symbol(app, "Config")
        a = tree.module("a", app, tree.function(app, "f", returns=tree.ref(app_config)))

        report = tree.resolve()

        # The name lookup finds the module itself, which no module owns.
        assert tree.context.find_reflection_by_name("Config") is config_module
        assert report.for_module("a").dropped == [app_config]
        assert _namespaces(a) == []
        assert tree.project.get_reflection_from_symbol(app_config) is None


class TestSynthesis:

    def test_same_name_synthesized_in_two_modules(self, tree):
        one, two = tree.program("one"), tree.program("two")
        props_one = tree.symbol(one, "Props")
        props_two = tree.symbol(two, "Props")
        a = tree.module("a", one, tree.function(one, "f", returns=tree.ref(props_one)))
        b = tree.module("b", two, tree.function(two, "g", returns=tree.ref(props_two)))

        report = tree.resolve()

        assert report.for_module("b").dropped == []
        for module, symbol in ((a, props_one), (b, props_two)):
            (internal,) = _namespaces(module)
            assert tree.project.get_reflection_from_symbol(symbol) is internal.children[0]
            assert discover_missing_exports(module) == {}

    def test_member_with_same_name_does_not_block_synthesis(self, tree):
        main = tree.program()
        config = tree.symbol(main, "Config")
        config.declaration.members.append(
            Symbol("Level", ReflectionKind.PROPERTY, main, SymbolDeclaration())
        )
        level = tree.symbol(main, "Level")
        a = tree.module("a", main, config, tree.function(main, "f", returns=tree.ref(level)))

        report = tree.resolve()

        (internal,) = _namespaces(a)
        assert [c.name for c in internal.children] == ["Level"]
        assert report.for_module("a").dropped == []
        assert discover_missing_exports(a) == {}

    def test_undocumented_type_goes_to_internal_namespace(self, tree):
        main = tree.program()
        u = tree.symbol(main, "U")
        a = tree.module("a", main, tree.function(main, "f", returns=tree.ref(u)))

        report = tree.resolve()

        (internal,) = _namespaces(a)
        assert internal.name == DEFAULT_INTERNAL_NAMESPACE
        assert [c.name for c in internal.children] == ["U"]
        assert tree.project.get_reflection_from_symbol(u) is internal.children[0]
        assert report.for_module("a").namespace is internal

    def test_configured_namespace_name(self, tree):
        main = tree.program()
        u = tree.symbol(main, "U")
        a = tree.module("a", main, tree.function(main, "f", returns=tree.ref(u)))

        tree.resolve(**{OPTION_INTERNAL_NAMESPACE: "hidden"})

        assert [ns.name for ns in _namespaces(a)] == ["hidden"]

    def test_no_synthesis_leaves_symbol_unresolved(self, tree):
        main = tree.program()
        u = tree.symbol(main, "U")
        a = tree.module("a", main, tree.function(main, "f", returns=tree.ref(u)))

        report = tree.resolve(**{OPTION_NO_MISSING_EXPORTS: True})

        assert _namespaces(a) == []
        assert tree.project.get_reflection_from_symbol(u) is None
        assert report.for_module("a").unresolved == [u]
        assert list(discover_missing_exports(a)) == [u]

    def test_transitive_references_are_synthesized(self, tree):
        main = tree.program()
        v = tree.symbol(main, "V")
        u = tree.symbol(main, "U", ReflectionKind.TYPE_ALIAS, type=tree.ref(v))
        a = tree.module("a", main, tree.function(main, "f", returns=tree.ref(u)))

        report = tree.resolve()

        (internal,) = _namespaces(a)
        assert [c.name for c in internal.children] == ["U", "V"]
        assert report.for_module("a").rounds == 2
        assert discover_missing_exports(a) == {}

    def test_reference_cycle_terminates(self, tree):
        main = tree.program()
        u = tree.symbol(main, "U", ReflectionKind.TYPE_ALIAS)
        v = tree.symbol(main, "V", ReflectionKind.TYPE_ALIAS, type=tree.ref(u))
        u.declaration.type = tree.ref(v)
        a = tree.module("a", main, tree.function(main, "f", returns=tree.ref(u)))

        tree.resolve()

        (internal,) = _namespaces(a)
        assert sorted(c.name for c in internal.children) == ["U", "V"]

    def test_namespace_without_children_is_pruned(self, tree):
        main = tree.program()
        opaque = tree.opaque(main, "Opaque")
        a = tree.module("a", main, tree.function(main, "f", returns=tree.ref(opaque)))

        report = tree.resolve()

        assert _namespaces(a) == []
        assert report.for_module("a").namespace is None
        assert not any(
            r.name == DEFAULT_INTERNAL_NAMESPACE for r in tree.project.reflections.values()
        )

    def test_synthesis_runs_under_the_module_program(self, tree):
        main = tree.program()
        u = tree.symbol(main, "U")
        tree.module("a", main, tree.function(main, "f", returns=tree.ref(u)))
        seen = []
        tree.app.converter.on(
            Converter.EVENT_CREATE_DECLARATION,
            lambda context, reflection: seen.append((reflection.name, context.active_program)),
        )

        tree.resolve()

        assert (DEFAULT_INTERNAL_NAMESPACE, main) in seen
        assert ("U", main) in seen
        assert tree.context.active_program is None


class TestPolicy:

    def test_default_export_is_never_resolved(self, tree):
        main = tree.program()
        default = tree.symbol(main, DEFAULT_EXPORT_NAME)
        a = tree.module("a", main, tree.function(main, "f", returns=tree.ref(default)))

        report = tree.resolve()

        assert report.for_module("a").skipped_defaults == [default]
        assert _namespaces(a) == []
        assert tree.project.get_reflection_from_symbol(default) is None

    def test_module_without_missing_symbols_is_untouched(self, tree):
        main = tree.program()
        tree.module("a", main, tree.function(main, "f"))

        report = tree.resolve()

        assert report.modules == []
        assert not report.changed

    def test_project_is_the_module_when_there_are_none(self, tree):
        main = tree.program()
        u = tree.symbol(main, "U")
        tree.export_to_project(main, tree.function(main, "f", returns=tree.ref(u)))

        report = tree.resolve()

        (internal,) = _namespaces(tree.project)
        assert [c.name for c in internal.children] == ["U"]
        assert report.modules[0].module is tree.project

    def test_second_pass_changes_nothing(self, tree):
        lib, main = tree.program("lib"), tree.program()
        tree.module("b", lib, tree.symbol(lib, "T"))
        u = tree.symbol(main, "U", type=tree.ref(tree.symbol(main, "V")))
        t = tree.symbol(main, "T")
        d = tree.symbol(main, DEFAULT_EXPORT_NAME)
        fn = tree.function(main, "f", returns=tree.ref(u), a=tree.ref(t), b=tree.ref(d))
        tree.module("a", main, fn)

        first = tree.resolve()
        snapshot = project_to_dict(tree.project)
        second = tree.resolve()

        assert first.changed
        assert not second.changed
        assert project_to_dict(tree.project) == snapshot


class TestDriverState:

    def test_known_programs_are_consumed(self, tree):
        main = tree.program()
        u = tree.symbol(main, "U")
        a = tree.module("a", main, tree.function(main, "f", returns=tree.ref(u)))
        known = {a: main}

        resolve_missing_exports(tree.context, known)

        assert known == {}

    def test_each_module_gets_its_own_namespace(self, tree):
        one, two = tree.program("one"), tree.program("two")
        u1 = tree.symbol(one, "U")
        u2 = tree.symbol(two, "U2")
        a = tree.module("a", one, tree.function(one, "f", returns=tree.ref(u1)))
        b = tree.module("b", two, tree.function(two, "g", returns=tree.ref(u2)))

        report = tree.resolve()

        assert [c.name for c in _namespaces(a)[0].children] == ["U"]
        assert [c.name for c in _namespaces(b)[0].children] == ["U2"]
        assert report.synthesized_count == 2
        assert "a: 0 aliased, 1 synthesized" in report.summary()


class TestPlugin:

    def test_options_are_declared_with_defaults(self, tree):
        options = tree.app.options
        assert options.get_value(OPTION_INTERNAL_NAMESPACE) == "internal"
        assert options.get_value(OPTION_NO_MISSING_EXPORTS) is False

    def test_programs_recorded_per_module_and_project(self, tree):
        main = tree.program()
        a = tree.module("a", main, tree.function(main, "f"))
        assert tree.plugin.known_programs[a] is main
        assert tree.plugin.known_programs[tree.project] is main

    def test_runs_before_other_resolve_listeners(self, tree):
        main = tree.program()
        u = tree.symbol(main, "U")
        tree.module("a", main, tree.function(main, "f", returns=tree.ref(u)))
        observed = []
        tree.app.converter.on(
            Converter.EVENT_RESOLVE_BEGIN,
            lambda context: observed.append(tree.plugin.last_report is not None),
            priority=RESOLVE_PRIORITY - 1,
        )

        tree.resolve()

        assert observed == [True]
        assert tree.plugin.known_programs == {}
