# tests/test_main.py
"""
End-to-end tests for the ``missing-exports`` command line.
"""

import json

import pytest

from missing_exports import __version__
from missing_exports.main import EXIT_INFRA, EXIT_MISSING, EXIT_OK, main


@pytest.fixture
def model_file(tmp_path, model_document):
    path = tmp_path / "model.json"
    path.write_text(json.dumps(model_document), encoding="utf-8")
    return path


class TestResolveCommand:

    def test_summary(self, model_file, capsys):
        assert main(["resolve", str(model_file)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "api: 0 aliased, 2 synthesized, 0 left unresolved (2 rounds)" in out
        assert "core:" not in out

    def test_no_missing_exports_flag(self, model_file, capsys):
        assert main(["resolve", str(model_file), "--no-missing-exports"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "api: 0 aliased, 0 synthesized, 1 left unresolved (1 round)" in out

    def test_json_tree(self, model_file, capsys):
        assert main(["resolve", str(model_file), "-f", "json",
                     "--internal-namespace", "hidden"]) == EXIT_OK
        tree = json.loads(capsys.readouterr().out)
        api = next(m for m in tree["children"] if m["name"] == "api")
        hidden = next(c for c in api["children"] if c["name"] == "hidden")
        assert hidden["kind"] == "namespace"
        assert [c["name"] for c in hidden["children"]] == ["Options", "Level"]

    def test_flag_overrides_model_option(self, tmp_path, model_document, capsys):
        model_document["options"] = {"internalNamespace": "fromModel"}
        path = tmp_path / "model.json"
        path.write_text(json.dumps(model_document), encoding="utf-8")

        assert main(["-v", "resolve", str(path), "-f", "json",
                     "--internal-namespace", "hidden"]) == EXIT_OK

        captured = capsys.readouterr()
        api = next(m for m in json.loads(captured.out)["children"] if m["name"] == "api")
        assert [c["name"] for c in api["children"] if c["kind"] == "namespace"] == ["hidden"]
        assert "overrides internalNamespace='fromModel'" in captured.err

    def test_report_to_file(self, model_file, tmp_path):
        out = tmp_path / "out" / "report.json"
        assert main(["resolve", str(model_file), "-f", "report", "-o", str(out)]) == EXIT_OK
        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["synthesized"] == 2
        assert report["modules"][0]["rounds"] == 2


class TestCheckCommand:

    def test_reports_missing_symbols(self, model_file, capsys):
        assert main(["check", str(model_file)]) == EXIT_MISSING
        assert capsys.readouterr().out.strip() == "api: Options (interface)"

    def test_clean_model(self, tmp_path, capsys):
        path = tmp_path / "clean.json"
        path.write_text(json.dumps({
            "programs": {"p": {"symbols": {"T": {"kind": "interface"}}}},
            "modules": [{"name": "m", "program": "p", "exports": ["T"]}],
        }), encoding="utf-8")
        assert main(["check", str(path)]) == EXIT_OK
        assert "no missing exports" in capsys.readouterr().out


class TestFailures:

    def test_missing_model_file(self, tmp_path):
        assert main(["resolve", str(tmp_path / "absent.json")]) == EXIT_INFRA

    def test_malformed_model(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"programs": {"p": {"symbols": {"X": {"kind": "gizmo"}}}}}),
                        encoding="utf-8")
        assert main(["check", str(path)]) == EXIT_INFRA
        assert "gizmo" in capsys.readouterr().err

    def test_no_command(self, capsys):
        assert main([]) == EXIT_INFRA

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert __version__ in capsys.readouterr().out
