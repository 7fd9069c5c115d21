"""
Tests for the validate-data and import-quality-measures command line tools.
"""

import io
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

import import_quality_measures
import validate_data
from conftest import ROOT, measure_row, write_csv
from config import ImportConfig


def _measure(measure_id):
    return {
        "measureId": measure_id,
        "title": "Title",
        "category": "quality",
        "measureType": "outcome",
        "firstPerformanceYear": 2018,
        "isHighPriority": True,
        "isInverse": False,
        "submissionMethods": [],
        "measureSets": [],
    }


def _run(document, config, performance_year="2018"):
    return validate_data.run("measures", performance_year, io.StringIO(document), config)


class TestValidateData:
    def test_valid(self, config, capsys):
        assert _run(json.dumps([_measure("001")]), config) == 0
        assert capsys.readouterr().out.strip() == "Valid for 2018 performance year schema"

    def test_invalid(self, config, capsys):
        assert _run(json.dumps([_measure("001"), _measure("001")]), config) == 1
        out = capsys.readouterr().out
        assert out.startswith("Invalid for 2018 performance year schema: ")
        assert "Detailed error: " in out
        assert "uniqueItemProperties" in out

    def test_defaults_to_current_year(self, capsys):
        config = ImportConfig(schema_root=ROOT / "schemas", current_performance_year=2018)
        assert _run("[]", config, performance_year=None) == 0
        assert "2018" in capsys.readouterr().out

    def test_bad_json(self, config, capsys):
        assert _run("{not json", config) == 2
        assert "not valid JSON" in capsys.readouterr().out

    def test_unknown_year(self, config, capsys):
        assert _run("[]", config, performance_year="1999") == 2
        assert "1999" in capsys.readouterr().out

    def test_broken_schema(self, tmp_path, capsys):
        schema_file = tmp_path / "measures" / "2018" / "measures-schema.yaml"
        schema_file.parent.mkdir(parents=True)
        schema_file.write_text("type: [array\n", encoding="utf-8")
        assert _run("[]", ImportConfig(schema_root=tmp_path)) == 2
        assert "not valid YAML" in capsys.readouterr().out


class TestImportQualityMeasures:
    def test_main_writes_output(self, quality_csvs, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SCHEMA_ROOT", str(ROOT / "schemas"))
        quality, strata = quality_csvs
        output = tmp_path / "measures.json"
        assert import_quality_measures.main([str(quality), str(strata), str(output)]) == 0
        assert "Wrote 2 measures" in capsys.readouterr().out
        assert len(json.loads(output.read_text(encoding="utf-8"))) == 2

    def test_main_reports_missing_stratum_parent(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SCHEMA_ROOT", str(ROOT / "schemas"))
        quality = write_csv(tmp_path / "quality.csv", [measure_row("001")])
        strata = write_csv(tmp_path / "strata.csv", [["404", "Stratum", "", "d"]])
        output = tmp_path / "measures.json"
        assert import_quality_measures.main([str(quality), str(strata), str(output)]) == 1
        assert "404" in capsys.readouterr().err
        assert not output.exists()

    def test_main_with_column_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCHEMA_ROOT", str(ROOT / "schemas"))
        quality = write_csv(tmp_path / "quality.csv", [measure_row("001", c57="FALSE")])
        strata = write_csv(tmp_path / "strata.csv", [])
        overrides = tmp_path / "overrides.yaml"
        overrides.write_text("sourced_fields:\n  isInverse: 57\n", encoding="utf-8")
        output = tmp_path / "measures.json"

        args = [str(quality), str(strata), str(output), "--column-overrides", str(overrides), "--strict-defaults"]
        assert import_quality_measures.main(args) == 0
        assert json.loads(output.read_text(encoding="utf-8"))[0]["isInverse"] is False

    def test_main_rejects_invalid_collection(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SCHEMA_ROOT", str(ROOT / "schemas"))
        quality = write_csv(tmp_path / "quality.csv", [measure_row("001"), measure_row("001")])
        strata = write_csv(tmp_path / "strata.csv", [])
        output = tmp_path / "measures.json"
        assert import_quality_measures.main([str(quality), str(strata), str(output)]) == 1
        err = capsys.readouterr().err
        assert "output not written" in err
        assert "measureId" in err
        assert not output.exists()

    def test_main_skip_validation_writes_invalid_collection(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SCHEMA_ROOT", str(ROOT / "schemas"))
        quality = write_csv(tmp_path / "quality.csv", [measure_row("001"), measure_row("001")])
        strata = write_csv(tmp_path / "strata.csv", [])
        output = tmp_path / "measures.json"
        assert import_quality_measures.main([str(quality), str(strata), str(output), "--skip-validation"]) == 0
        assert "Wrote 2 measures" in capsys.readouterr().out
        assert [m["measureId"] for m in json.loads(output.read_text(encoding="utf-8"))] == ["001", "001"]

    def test_main_reports_broken_schema(self, quality_csvs, tmp_path, monkeypatch, capsys):
        schema_file = tmp_path / "schemas" / "measures" / "2018" / "measures-schema.yaml"
        schema_file.parent.mkdir(parents=True)
        schema_file.write_text("type: 12\n", encoding="utf-8")
        monkeypatch.setenv("SCHEMA_ROOT", str(tmp_path / "schemas"))
        quality, strata = quality_csvs
        output = tmp_path / "measures.json"
        assert import_quality_measures.main([str(quality), str(strata), str(output)]) == 1
        assert "not a valid JSON Schema" in capsys.readouterr().err
        assert not output.exists()
