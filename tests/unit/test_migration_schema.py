"""The initial migration creates exactly what the ORM models map."""

from __future__ import annotations

import importlib.util
import re
from pathlib import Path

import pytest

import fgd.db.models  # noqa: F401
from fgd.db.base import Base

MIGRATION = Path(__file__).resolve().parents[2] / "alembic" / "versions" / "001_initial_schema.py"

_CREATE_TABLE = re.compile(r"CREATE TABLE IF NOT EXISTS (\w+) \((.*)\)", re.DOTALL)


class _RecordingOp:
    def __init__(self) -> None:
        self.statements: list[str] = []

    def execute(self, sql: str) -> None:
        self.statements.append(sql)


def _run(step: str) -> list[str]:
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    recorder = _RecordingOp()
    module.op = recorder
    getattr(module, step)()
    return recorder.statements


@pytest.fixture(scope="module")
def created_tables() -> dict[str, set[str]]:
    tables = {}
    for sql in _run("upgrade"):
        match = _CREATE_TABLE.search(sql)
        if match:
            tables[match.group(1)] = set(re.findall(r"^\s*(\w+)\s", match.group(2), re.MULTILINE))
    return tables


class TestInitialMigration:
    """Compare the migration SQL against Base.metadata."""

    def test_every_model_table_is_created(self, created_tables):
        assert set(Base.metadata.tables) <= set(created_tables)

    def test_every_model_column_is_created(self, created_tables):
        for name, table in Base.metadata.tables.items():
            missing = {c.name for c in table.columns} - created_tables[name]
            assert not missing, f"{name} is missing {sorted(missing)}"

    def test_no_views(self):
        assert not any(re.search(r"\bVIEW\b", sql) for sql in _run("upgrade"))
        assert not any(re.search(r"\bVIEW\b", sql) for sql in _run("downgrade"))

    def test_downgrade_drops_every_table(self):
        dropped = {sql.split()[-2] for sql in _run("downgrade")}
        assert dropped == set(Base.metadata.tables)
