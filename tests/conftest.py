from pathlib import Path

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteContentRepo, SQLiteContentTypeRepo
from src.app_shell.config import seed_content_types
from src.rules.loader import load_rules

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def rules_path() -> Path:
    return PROJECT_ROOT / "rules.yaml"


@pytest.fixture
def rules(rules_path):
    return load_rules(rules_path)


@pytest.fixture
def db_path(tmp_path):
    """A migrated, empty SQLite database."""
    path = str(tmp_path / "cms.db")
    SQLiteMigrator(path, PROJECT_ROOT / "migrations").run_migrations()
    return path


@pytest.fixture
def content_type_repo(db_path):
    return SQLiteContentTypeRepo(db_path)


@pytest.fixture
def content_repo(db_path):
    return SQLiteContentRepo(db_path)


@pytest.fixture
def seeded_types(rules, content_type_repo):
    """Content types from rules.yaml, keyed by alias, with store ids."""
    return {ct.alias: ct for ct in seed_content_types(rules, content_type_repo)}
