"""
Content save pipeline tests.

Covers per-property deserialization, file association, missing editors,
and the single commit per save.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from src.adapters.fs.filestore import FileSystemStore
from src.components.content import (
    GetContentByIdInput,
    PropertyValueError,
    SaveContentInput,
    SubmittedProperty,
    UnknownPropertyError,
    build_property_data,
    files_for_property,
    resolve_property_values,
    run,
    run_save,
)
from src.components.property_editors import (
    ContentPropertyData,
    IntegerEditor,
    RichTextEditor,
    TextboxEditor,
    UploadedFile,
    UploadFieldEditor,
)
from src.domain.entities import ContentItem, ContentType, PropertyType

# --- Mocks ---


class MockContentRepo:
    """Mock content repository that records saves."""

    def __init__(self) -> None:
        self.items: dict[int, ContentItem] = {}
        self.save_calls: list[ContentItem] = []
        self._next_id = 100

    def get_by_id(self, item_id: int) -> ContentItem | None:
        return self.items.get(item_id)

    def save(self, content: ContentItem) -> ContentItem:
        self.save_calls.append(content)
        if content.id is None:
            content.id = self._next_id
            self._next_id += 1
        self.items[content.id] = content
        return content


class FailingContentRepo(MockContentRepo):
    def save(self, content: ContentItem) -> ContentItem:
        self.save_calls.append(content)
        raise sqlite3.OperationalError("database is locked")


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self._now = now

    def now_utc(self) -> datetime:
        return self._now


class RecordingEditor:
    """Editor that records its inputs and returns a computed value."""

    name = "Recording"

    def __init__(self, alias: str = "recording") -> None:
        self.alias = alias
        self.calls: list[tuple[ContentPropertyData, Any]] = []

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        self.calls.append((data, current_value))
        return {"previous": current_value, "submitted": data.value}


class RejectingEditor:
    alias = "rejecting"
    name = "Rejecting"

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        raise ValueError(f"'{data.value}' is not accepted")


class ShoutingEditor:
    alias = "shout"
    name = "Shout"

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        return str(data.value).upper()


# --- Fixtures ---


@pytest.fixture
def article_type() -> ContentType:
    return ContentType(
        id=1,
        alias="article",
        name="Article",
        property_types=[
            PropertyType(id=11, alias="title", name="Title", editor_alias="textbox"),
            PropertyType(id=12, alias="body", name="Body", editor_alias="richtext"),
            PropertyType(id=13, alias="image", name="Image", editor_alias="upload", group="Media"),
        ],
    )


@pytest.fixture
def article(article_type: ContentType) -> ContentItem:
    item = ContentItem.scaffold("First article", -1, article_type)
    item.id = 10
    item.apply_property_values(
        {"title": "Old title", "body": "<p>Old</p>", "image": "13/abc/old.png"}
    )
    return item


@pytest.fixture
def repo(article: ContentItem) -> MockContentRepo:
    r = MockContentRepo()
    r.items[article.id] = article
    return r


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 6, 15, 12, 0, 0, tzinfo=UTC))


def _warnings(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.levelno == logging.WARNING]


# --- File association ---


class TestFileAssociation:
    def test_files_for_property_keeps_order(self) -> None:
        files = [
            UploadedFile(property_id=1, temp_file_path="/tmp/a", file_name="a.png"),
            UploadedFile(property_id=2, temp_file_path="/tmp/b", file_name="b.png"),
            UploadedFile(property_id=1, temp_file_path="/tmp/c", file_name="c.png"),
        ]

        result = files_for_property(files, 1)

        assert [f.file_name for f in result] == ["a.png", "c.png"]

    def test_property_data_without_files_has_no_files_entry(self) -> None:
        prop = SubmittedProperty(id=11, alias="title", value="Hello", editor=TextboxEditor())

        data = build_property_data(prop, [])

        assert data.value == "Hello"
        assert data.additional.files is None

    def test_property_data_ignores_other_properties_files(self) -> None:
        prop = SubmittedProperty(id=11, alias="title", value="Hello", editor=TextboxEditor())
        other = UploadedFile(property_id=12, temp_file_path="/tmp/x", file_name="x.png")

        data = build_property_data(prop, [other])

        assert data.additional.files is None

    def test_each_editor_only_sees_its_own_files(
        self, article: ContentItem, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        title_editor = RecordingEditor()
        image_editor = RecordingEditor()
        title_file = UploadedFile(property_id=11, temp_file_path="/tmp/t", file_name="t.txt")
        image_files = (
            UploadedFile(property_id=13, temp_file_path="/tmp/1", file_name="1.png"),
            UploadedFile(property_id=13, temp_file_path="/tmp/2", file_name="2.png"),
        )
        stray = UploadedFile(property_id=99, temp_file_path="/tmp/s", file_name="s.png")

        inp = SaveContentInput(
            properties=(
                SubmittedProperty(id=11, alias="title", value="T", editor=title_editor),
                SubmittedProperty(id=12, alias="body", value="B", editor=RecordingEditor()),
                SubmittedProperty(id=13, alias="image", value=None, editor=image_editor),
            ),
            persisted_content=article,
            uploaded_files=(title_file, *image_files, stray),
        )

        run_save(inp, repo=repo, time=clock)

        assert title_editor.calls[0][0].additional.files == (title_file,)
        assert image_editor.calls[0][0].additional.files == image_files


# --- Deserialization ---


class TestResolvePropertyValues:
    def test_editor_receives_previous_stored_value(self, article: ContentItem) -> None:
        editor = RecordingEditor()
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=11, alias="title", value="New", editor=editor),),
            persisted_content=article,
        )

        values = resolve_property_values(inp)

        assert editor.calls[0][1] == "Old title"
        assert values == {"title": {"previous": "Old title", "submitted": "New"}}

    def test_missing_editor_is_left_out_and_logged(
        self, article: ContentItem, caplog: pytest.LogCaptureFixture
    ) -> None:
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=12, alias="body", value="<p>x</p>", editor=None),),
            persisted_content=article,
        )

        values = resolve_property_values(inp)

        assert values == {}
        warnings = _warnings(caplog)
        assert len(warnings) == 1
        assert warnings[0].getMessage() == "No property editor found for property body"

    def test_does_not_mutate_content(self, article: ContentItem) -> None:
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=11, alias="title", value="New", editor=TextboxEditor()),),
            persisted_content=article,
        )

        resolve_property_values(inp)

        assert article.property_by_alias("title").value == "Old title"

    def test_unknown_alias_with_editor_raises(self, article: ContentItem) -> None:
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=99, alias="missing", value="x", editor=TextboxEditor()),),
            persisted_content=article,
        )

        with pytest.raises(UnknownPropertyError) as exc_info:
            resolve_property_values(inp)

        assert exc_info.value.alias == "missing"


# --- Orchestrator ---


class TestRunSave:
    def test_scenario_a_saves_values_once_without_diagnostics(
        self,
        article: ContentItem,
        repo: MockContentRepo,
        clock: FixedClock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        richtext = RichTextEditor()
        inp = SaveContentInput(
            properties=(
                SubmittedProperty(id=11, alias="title", value="Hello", editor=TextboxEditor()),
                SubmittedProperty(id=12, alias="body", value="<p>Hi</p>", editor=richtext),
            ),
            persisted_content=article,
        )

        result = run_save(inp, repo=repo, time=clock)

        assert result.success
        assert article.property_by_alias("title").value == "Hello"
        expected_body = richtext.deserialize(ContentPropertyData(value="<p>Hi</p>"), "<p>Old</p>")
        assert article.property_by_alias("body").value == expected_body
        assert len(repo.save_calls) == 1
        assert _warnings(caplog) == []

    def test_scenario_b_missing_editor_skips_property_but_saves_others(
        self,
        article: ContentItem,
        repo: MockContentRepo,
        clock: FixedClock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        upload = UploadedFile(property_id=13, temp_file_path="/tmp/new.png", file_name="new.png")
        inp = SaveContentInput(
            properties=(
                SubmittedProperty(id=11, alias="title", value="Hello", editor=TextboxEditor()),
                SubmittedProperty(id=13, alias="image", value=None, editor=None),
            ),
            persisted_content=article,
            uploaded_files=(upload,),
        )

        result = run_save(inp, repo=repo, time=clock)

        assert result.success
        warnings = _warnings(caplog)
        assert len(warnings) == 1
        assert "image" in warnings[0].getMessage()
        assert article.property_by_alias("image").value == "13/abc/old.png"
        assert article.property_by_alias("title").value == "Hello"
        assert len(repo.save_calls) == 1

    def test_skipped_property_stays_unchanged_across_repeated_saves(
        self, article: ContentItem, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        before = article.property_by_alias("body").value
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=12, alias="body", value="<p>New</p>", editor=None),),
            persisted_content=article,
        )

        for _ in range(3):
            run_save(inp, repo=repo, time=clock)

        assert article.property_by_alias("body").value == before
        assert len(repo.save_calls) == 3

    def test_value_is_computed_from_previous_save(
        self, article: ContentItem, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=11, alias="title", value="v", editor=RecordingEditor()),),
            persisted_content=article,
        )

        run_save(inp, repo=repo, time=clock)
        first = article.property_by_alias("title").value
        run_save(inp, repo=repo, time=clock)

        assert article.property_by_alias("title").value == {"previous": first, "submitted": "v"}

    def test_returns_display_of_saved_content(
        self, article: ContentItem, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=11, alias="title", value="abc", editor=ShoutingEditor()),),
            persisted_content=article,
        )

        result = run_save(inp, repo=repo, time=clock)

        assert result.display is not None
        assert result.display.id == 10
        assert result.display.property_by_alias("title").value == "ABC"
        assert result.display.updated_at == clock.now_utc()

    def test_new_content_gets_id_from_repo(
        self, article_type: ContentType, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        scaffold = ContentItem.scaffold("Empty", 5, article_type)
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=11, alias="title", value="Hi", editor=TextboxEditor()),),
            persisted_content=scaffold,
            name="Brand new",
        )

        result = run_save(inp, repo=repo, time=clock)

        assert result.display.id == 100
        assert result.display.is_new is False
        assert result.display.name == "Brand new"
        assert result.display.parent_id == 5

    def test_blank_name_keeps_existing_name(
        self, article: ContentItem, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        inp = SaveContentInput(properties=(), persisted_content=article, name="   ")

        run_save(inp, repo=repo, time=clock)

        assert article.name == "First article"

    def test_persistence_failure_propagates(self, article: ContentItem, clock: FixedClock) -> None:
        repo = FailingContentRepo()
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=11, alias="title", value="x", editor=TextboxEditor()),),
            persisted_content=article,
        )

        with pytest.raises(sqlite3.OperationalError):
            run_save(inp, repo=repo, time=clock)

        assert len(repo.save_calls) == 1

    def test_unknown_property_is_not_committed(
        self, article: ContentItem, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        inp = SaveContentInput(
            properties=(SubmittedProperty(id=99, alias="nope", value="x", editor=TextboxEditor()),),
            persisted_content=article,
        )

        with pytest.raises(UnknownPropertyError):
            run_save(inp, repo=repo, time=clock)

        assert repo.save_calls == []


# --- Media changes settle with the commit ---


@pytest.fixture
def media_store(tmp_path: Path) -> FileSystemStore:
    return FileSystemStore(str(tmp_path / "media"))


@pytest.fixture
def stored_image(article: ContentItem, media_store: FileSystemStore, tmp_path: Path) -> str:
    original = tmp_path / "old.png"
    original.write_bytes(b"old")
    path = media_store.save_file(13, "old.png", str(original))
    article.apply_property_values({"image": path})
    return path


def _image_upload_input(article: ContentItem, media_store, tmp_path: Path) -> SaveContentInput:
    staged = tmp_path / "staged-new.png"
    staged.write_bytes(b"new")
    return SaveContentInput(
        properties=(
            SubmittedProperty(
                id=13, alias="image", value=None, editor=UploadFieldEditor(media_store)
            ),
        ),
        persisted_content=article,
        uploaded_files=(
            UploadedFile(property_id=13, temp_file_path=str(staged), file_name="new.png"),
        ),
    )


class TestMediaSettlement:
    def test_replaced_file_is_deleted_after_commit(
        self,
        article: ContentItem,
        repo: MockContentRepo,
        clock: FixedClock,
        media_store: FileSystemStore,
        stored_image: str,
        tmp_path: Path,
    ) -> None:
        inp = _image_upload_input(article, media_store, tmp_path)

        result = run_save(inp, repo=repo, time=clock)

        new_path = result.display.property_by_alias("image").value
        assert media_store.get(new_path) == b"new"
        with pytest.raises(FileNotFoundError):
            media_store.get(stored_image)

    def test_failed_commit_keeps_previous_file_and_drops_new_one(
        self,
        article: ContentItem,
        clock: FixedClock,
        media_store: FileSystemStore,
        stored_image: str,
        tmp_path: Path,
    ) -> None:
        repo = FailingContentRepo()

        inp = _image_upload_input(article, media_store, tmp_path)

        with pytest.raises(sqlite3.OperationalError):
            run_save(inp, repo=repo, time=clock)

        assert media_store.get(stored_image) == b"old"
        assert list((tmp_path / "media" / "13").iterdir()) == [
            (tmp_path / "media" / stored_image).parent
        ]

    def test_rejected_value_keeps_previous_file_and_drops_new_one(
        self,
        article: ContentItem,
        repo: MockContentRepo,
        clock: FixedClock,
        media_store: FileSystemStore,
        stored_image: str,
        tmp_path: Path,
    ) -> None:
        upload_inp = _image_upload_input(article, media_store, tmp_path)
        inp = SaveContentInput(
            properties=(
                *upload_inp.properties,
                SubmittedProperty(id=11, alias="title", value="x", editor=RejectingEditor()),
            ),
            persisted_content=article,
            uploaded_files=upload_inp.uploaded_files,
        )

        result = run_save(inp, repo=repo, time=clock)

        assert not result.success
        assert repo.save_calls == []
        assert media_store.get(stored_image) == b"old"
        assert len(list((tmp_path / "media" / "13").iterdir())) == 1


# --- Rejected values ---


class TestRejectedValues:
    def test_all_rejections_are_reported(self, article: ContentItem) -> None:
        inp = SaveContentInput(
            properties=(
                SubmittedProperty(id=11, alias="title", value="a", editor=RejectingEditor()),
                SubmittedProperty(id=12, alias="body", value="b", editor=RejectingEditor()),
            ),
            persisted_content=article,
        )

        with pytest.raises(PropertyValueError) as exc_info:
            resolve_property_values(inp)

        assert [e.field for e in exc_info.value.errors] == ["properties.title", "properties.body"]
        assert {e.code for e in exc_info.value.errors} == {"invalid_value"}

    def test_rejected_value_fails_save_without_commit(
        self, article: ContentItem, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        inp = SaveContentInput(
            properties=(
                SubmittedProperty(id=11, alias="title", value="fine", editor=TextboxEditor()),
                SubmittedProperty(id=12, alias="body", value="abc", editor=IntegerEditor()),
            ),
            persisted_content=article,
        )

        result = run_save(inp, repo=repo, time=clock)

        assert not result.success
        assert result.display is None
        assert result.errors[0].field == "properties.body"
        assert "not a whole number" in result.errors[0].message
        assert repo.save_calls == []
        assert article.property_by_alias("title").value == "Old title"


# --- Dispatcher ---


class TestRun:
    def test_dispatches_save(
        self, article: ContentItem, repo: MockContentRepo, clock: FixedClock
    ) -> None:
        inp = SaveContentInput(properties=(), persisted_content=article)

        result = run(inp, repo=repo, time=clock)

        assert result.success
        assert len(repo.save_calls) == 1

    def test_save_requires_time_port(self, article: ContentItem, repo: MockContentRepo) -> None:
        with pytest.raises(ValueError):
            run(SaveContentInput(properties=(), persisted_content=article), repo=repo)

    def test_get_requires_repo(self) -> None:
        with pytest.raises(ValueError):
            run(GetContentByIdInput(content_id=1))

    def test_unknown_input_type(self, repo: MockContentRepo) -> None:
        with pytest.raises(ValueError):
            run("not an input", repo=repo)  # type: ignore[arg-type]
