"""Tests for migration file discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.db.migrate import MANAGED_TABLES, list_migration_files, pending_migrations


def test_bundled_migrations_are_ordered() -> None:
    names = [path.name for path in list_migration_files()]
    assert names == ["001_create_tables.sql", "002_create_indexes.sql"]


def test_bundled_migrations_create_managed_tables() -> None:
    sql_text = "\n".join(path.read_text(encoding="utf-8") for path in list_migration_files())
    for table in MANAGED_TABLES[:-1]:
        assert f"CREATE TABLE IF NOT EXISTS {table}" in sql_text


def test_pending_migrations_skips_applied(tmp_path: Path) -> None:
    for name in ("002_b.sql", "001_a.sql", "010_c.sql", "notes.txt"):
        (tmp_path / name).write_text("SELECT 1;", encoding="utf-8")

    files = list_migration_files(tmp_path)

    assert [p.name for p in files] == ["001_a.sql", "002_b.sql", "010_c.sql"]
    assert [p.name for p in pending_migrations(files, {"001_a.sql"})] == ["002_b.sql", "010_c.sql"]
    assert pending_migrations(files, [p.name for p in files]) == []


def test_missing_directory_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        list_migration_files(tmp_path / "missing")

    with pytest.raises(RuntimeError):
        list_migration_files(tmp_path)
