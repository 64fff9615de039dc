import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.clock import SystemClock
from src.adapters.fs.filestore import FileSystemStore
from src.adapters.sqlite.repos import SQLiteContentRepo, SQLiteContentTypeRepo
from src.components.property_editors import PropertyEditorRegistry, create_default_registry
from src.rules.loader import load_rules
from src.rules.models import Rules, UploadsRules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        data_dir = os.environ.get("CMS_DATA_DIR", "./data")
        self.db_path = f"{data_dir}/cms.db"
        self.media_dir = Path(f"{data_dir}/media")
        self.staging_dir: Path | None = None  # None uses the system temp dir
        self.rules_path = Path(os.environ.get("CMS_RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.migrations_dir = self.base_dir / "migrations"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


def get_upload_rules(rules: Rules = Depends(get_rules)) -> UploadsRules:
    return rules.uploads


# --- Repos ---
def get_content_repo(settings: Settings = Depends(get_settings)) -> SQLiteContentRepo:
    return SQLiteContentRepo(settings.db_path)


def get_content_type_repo(settings: Settings = Depends(get_settings)) -> SQLiteContentTypeRepo:
    return SQLiteContentTypeRepo(settings.db_path)


def get_file_store(settings: Settings = Depends(get_settings)) -> FileSystemStore:
    return FileSystemStore(base_path=str(settings.media_dir))


# --- Property Editors ---
class RichTextRulesAdapter:
    """Adapter to map generic Rules to the property editors RulesPort."""

    def __init__(self, rules: Rules):
        self._rules = rules.richtext

    def get_allowed_tags(self) -> list[str]:
        return self._rules.allowed_tags

    def get_allowed_attrs(self) -> dict[str, list[str]]:
        return self._rules.allowed_attrs

    def get_forbidden_tags(self) -> list[str]:
        return self._rules.forbidden_tags

    def get_forbidden_protocols(self) -> list[str]:
        return self._rules.forbidden_protocols


def get_property_editor_registry(
    media_store: FileSystemStore = Depends(get_file_store),
    rules: Rules = Depends(get_rules),
) -> PropertyEditorRegistry:
    return create_default_registry(media_store, RichTextRulesAdapter(rules))


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance
