"""Tests for the transpile entry point: determinism, manifest and diagnostics."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from airc.language import AirStrictModeError, parse
from airc.transpiler import TranspileOptions, transpile
from airc.version import __version__


FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"

SHOP_SOURCE = "@app:shop\n@api(\n  GET:/items>~db.Item.findMany\n)\n@ui(\n  btn:!frobnicate\n)"

CYCLE_SOURCE = """\
@app:library
@db{
  Author{id:int:primary:auto,name:str:required,book_id:int}
  Book{id:int:primary:auto,title:str:required,author_id:int}
}
"""


def load(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def test_transpile_is_deterministic() -> None:
    """Two runs over the same document should give identical files."""
    app = parse(load("fullstack.air"))

    first = transpile(app)
    second = transpile(app)

    assert first.files == second.files


def test_transpile_files_sorted_by_path() -> None:
    """Output files should be ordered by path."""
    paths = [f.path for f in transpile(parse(load("fullstack.air"))).files]

    assert paths == sorted(paths)
    assert "server/api.ts" in paths
    assert "client/src/api.js" in paths


def test_transpile_frontend_only_files() -> None:
    """A frontend-only app should produce the client files and the manifest."""
    result = transpile(parse(load("todo.air")))

    assert [f.path for f in result.files] == ["_airc_manifest.json", "src/App.jsx", "src/index.css"]
    assert result.warnings == []
    assert result.errors == []


def test_provenance_header_on_script_files_only() -> None:
    """JS and TS files should start with the provenance comment, others not."""
    result = transpile(parse(load("fullstack.air")))
    header = f"// Generated by airc {__version__} from tasks.air\n"

    assert result.file("client/src/App.jsx").content.startswith(header)
    assert result.file("server/api.ts").content.startswith(header)
    assert not result.file("client/src/index.css").content.startswith("//")
    assert not result.file("server/prisma/schema.prisma").content.startswith("//")


def test_manifest_lists_other_files() -> None:
    """The manifest should hash every file except itself."""
    result = transpile(parse(load("todo.air")))

    manifest = json.loads(result.file("_airc_manifest.json").content)

    assert manifest["generatedBy"] == "airc"
    assert manifest["version"] == __version__
    assert len(manifest["sourceHash"]) == 16
    assert [entry["path"] for entry in manifest["files"]] == ["src/App.jsx", "src/index.css"]
    app_entry = manifest["files"][0]
    assert app_entry["lines"] == result.file("src/App.jsx").line_count
    assert len(app_entry["hash"]) == 16


def test_manifest_source_hash_tracks_document() -> None:
    """Different documents should get different source hashes."""
    todo = json.loads(transpile(parse(load("todo.air"))).file("_airc_manifest.json").content)
    tasks = json.loads(transpile(parse(load("fullstack.air"))).file("_airc_manifest.json").content)

    assert todo["sourceHash"] != tasks["sourceHash"]


def test_contract_diagnostics() -> None:
    """Unused and non-executable contracts should be reported as warnings outside strict mode."""
    result = transpile(parse(load("fullstack.air")))

    assert result.warnings == [
        "AIR-W009: Handler contract 'notify' is not referenced by any UI mutation",
        "AIR-E010: Handler contract 'notify' has no executable ~db.Model.op target",
    ]
    assert result.errors == []


def test_strict_handlers_rejects_non_executable_contract() -> None:
    """Strict mode should fail on a contract without a db target."""
    with pytest.raises(AirStrictModeError) as excinfo:
        transpile(parse(load("fullstack.air")), TranspileOptions(strict_handlers=True))

    assert excinfo.value.code == "AIR-E010"
    assert "notify" in str(excinfo.value)


def test_unresolved_mutation_reported() -> None:
    """Without strict mode an unmatched mutation should be a warning and a stub."""
    result = transpile(parse(SHOP_SOURCE))

    assert result.unresolved_mutations == ["frobnicate"]
    assert result.warnings == ["AIR-E009: Mutation '!frobnicate' does not match any API route"]
    assert result.errors == []
    assert "console.log('frobnicate', ...args);" in result.file("client/src/App.jsx").content


def test_strict_handlers_rejects_unresolved_mutation() -> None:
    """Strict mode should fail on an unmatched mutation."""
    with pytest.raises(AirStrictModeError) as excinfo:
        transpile(parse(SHOP_SOURCE), TranspileOptions(strict_handlers=True))

    assert excinfo.value.code == "AIR-E009"


def test_unbreakable_relation_cycle_warning() -> None:
    """A cycle of required foreign keys should warn and still generate a seed."""
    result = transpile(parse(CYCLE_SOURCE))

    assert result.warnings == [
        "AIR-W010: Relation cycle without an optional edge among Author, Book; seed order may violate foreign keys"
    ]
    assert "Relation cycle without optional edge among Author, Book" in result.file("server/seed.ts").content


def test_stats() -> None:
    """Stats should count lines, mutations and files."""
    source = load("todo.air")
    input_lines = len(source.splitlines())

    result = transpile(parse(source), TranspileOptions(source_lines=input_lines))
    stats = result.stats

    assert stats.input_lines == input_lines
    assert stats.output_lines == sum(f.line_count for f in result.files)
    assert stats.compression_ratio == round(stats.output_lines / input_lines, 1)
    assert stats.pages == 0
    assert stats.components == 1
    assert stats.mutations == 2
    assert stats.files == 3


def test_stats_without_source_lines() -> None:
    """A zero input line count should leave the ratio at zero."""
    assert transpile(parse(load("todo.air"))).stats.compression_ratio == 0.0


def test_result_file_lookup_missing() -> None:
    """Unknown paths should give None."""
    assert transpile(parse(load("todo.air"))).file("nope.txt") is None
