"""Tests for the command-line tools."""

import json

import pytest

from shopbridge.cli import main


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"field_mappings": [
        {"source_field": "name", "dest_field": "title", "is_required": True},
        {"source_field": "stock", "dest_field": "variants[0].inventoryQuantity",
         "transform_type": "convert", "transform_config": {"type": "int"}},
    ]}))
    return str(path)


@pytest.fixture
def input_file(tmp_path):
    path = tmp_path / "product.json"
    path.write_text(json.dumps({"name": "Shoe", "stock": "3"}))
    return str(path)


class TestPreview:

    def test_prints_destination(self, capsys, rules_file, input_file):
        assert main(["preview", "--mapping", rules_file, "--input", input_file]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["data"] == {"title": "Shoe", "variants": [{"inventoryQuantity": 3}]}

    def test_reports_pipeline_error(self, capsys, tmp_path, rules_file):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"stock": "3"}))
        assert main(["preview", "--mapping", rules_file, "--input", str(path)]) == 1
        output = json.loads(capsys.readouterr().out)
        assert output["error_type"] == "RequiredFieldMissing"

    def test_non_object_input(self, capsys, tmp_path, rules_file):
        path = tmp_path / "list.json"
        path.write_text("[]")
        assert main(["preview", "--mapping", rules_file, "--input", str(path)]) == 1
        assert "must be a JSON object" in capsys.readouterr().err

    def test_defaults_with_lookup(self, capsys, tmp_path):
        source = tmp_path / "product.json"
        source.write_text(json.dumps({
            "id": "p-1", "name": "Shoe", "price": [{"gross": 10}], "manufacturerId": "m-1",
        }))
        lookup = tmp_path / "lookup.json"
        lookup.write_text(json.dumps({"manufacturer": {"m-1": {"name": "Acme"}}}))

        code = main(["preview", "--defaults", "--input", str(source), "--lookup", str(lookup)])

        assert code == 0
        data = json.loads(capsys.readouterr().out)["data"]
        assert data["vendor"] == "Acme"
        assert data["variants"] == [{"price": "10"}]

    def test_requires_rules(self, input_file):
        assert main(["preview", "--input", input_file]) == 2


class TestValidate:

    def test_valid_rules(self, capsys, rules_file):
        assert main(["validate", "--mapping", rules_file]) == 0
        assert "All 2 rules are valid" in capsys.readouterr().out

    def test_reports_each_problem(self, capsys, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([
            {"source_field": "a", "dest_field": "b", "transform_type": "map", "transform_config": ""},
            {"source_field": "", "dest_field": "c"},
            {"source_field": "d", "dest_field": "e", "transform_type": "shout"},
        ]))

        assert main(["validate", "--mapping", str(path)]) == 1
        output = capsys.readouterr().out
        assert "1. a -> b: invalid transform config" in output
        assert "2. ? -> c: source field is required" in output
        assert "3. d -> e: unsupported transformation type: shout" in output


class TestDefaults:

    def test_prints_default_rules(self, capsys):
        assert main(["defaults"]) == 0
        rules = json.loads(capsys.readouterr().out)
        assert rules[1] == {
            "id": None,
            "dataflow_id": None,
            "source_field": "name",
            "dest_field": "title",
            "is_required": True,
            "default_value": "",
            "transform_type": "none",
            "transform_config": "",
        }
