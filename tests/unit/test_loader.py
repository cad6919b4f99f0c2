"""
Unit tests for sqlrunner.core.loader (script resolution).
"""

import pytest

from sqlrunner.core.loader import ScriptLoader
from sqlrunner.domain.errors import ScriptLoadError


def test_relative_path_resolved_against_base_dir(scripts_dir) -> None:
    (scripts_dir / "seed.sql").write_text("SELECT 1;", encoding="utf-8")

    assert ScriptLoader(base_dir=scripts_dir).load("seed.sql") == "SELECT 1;"


def test_absolute_path_ignores_base_dir(scripts_dir, tmp_path) -> None:
    script = tmp_path / "elsewhere.sql"
    script.write_text("SELECT 2;", encoding="utf-8")

    assert ScriptLoader(base_dir=scripts_dir).load(script) == "SELECT 2;"


def test_missing_file(scripts_dir) -> None:
    with pytest.raises(ScriptLoadError) as exc_info:
        ScriptLoader(base_dir=scripts_dir).load("missing.sql")

    assert exc_info.value.code == "script_not_found"
    assert "missing.sql" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_undecodable_file(scripts_dir) -> None:
    (scripts_dir / "latin1.sql").write_bytes(b"SELECT '\xff\xfe';")

    with pytest.raises(ScriptLoadError) as exc_info:
        ScriptLoader(base_dir=scripts_dir).load("latin1.sql")

    assert exc_info.value.code == "script_unreadable"


def test_custom_encoding(scripts_dir) -> None:
    (scripts_dir / "latin1.sql").write_bytes("SELECT 'café';".encode("latin-1"))

    assert ScriptLoader(base_dir=scripts_dir, encoding="latin-1").load("latin1.sql") == (
        "SELECT 'café';"
    )


def test_directory_is_unreadable(scripts_dir) -> None:
    (scripts_dir / "folder.sql").mkdir()

    with pytest.raises(ScriptLoadError) as exc_info:
        ScriptLoader(base_dir=scripts_dir).load("folder.sql")

    assert exc_info.value.code == "script_unreadable"


def test_package_resource(tmp_path, monkeypatch) -> None:
    package = tmp_path / "sqlrunner_fixture_scripts"
    (package / "sql").mkdir(parents=True)
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "sql" / "schema.sql").write_text("CREATE TABLE t (id INT);", encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))

    script = ScriptLoader().load("sqlrunner_fixture_scripts:sql/schema.sql")

    assert script == "CREATE TABLE t (id INT);"


def test_missing_resource_in_existing_package() -> None:
    with pytest.raises(ScriptLoadError) as exc_info:
        ScriptLoader().load("sqlrunner:no/such/script.sql")

    assert exc_info.value.code == "script_not_found"


def test_unknown_package() -> None:
    with pytest.raises(ScriptLoadError) as exc_info:
        ScriptLoader().load("no_such_package_for_sqlrunner:seed.sql")

    assert exc_info.value.code == "script_not_found"
