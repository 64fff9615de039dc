"""
Content component - fetching, scaffolding, and saving content items.

Save pipeline:
- each submitted property is matched to the persisted property by alias
- files uploaded for the property (matched by property id) are attached
- the property's editor deserializes the raw value against the stored value
- all new values are merged into the persisted item once, then committed
- effects editors deferred (media writes and deletions) settle with the commit

Guarantees:
- a property without an editor is skipped and keeps its stored value
- files only reach the editor of the property whose id they carry
- exactly one repository save per save call, no partial commits
- values rejected by an editor fail the save with field errors, nothing is written
- fetching and scaffolding never write to the repository
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from src.components.property_editors import (
    ContentPropertyData,
    PropertyEditorData,
    SaveEffects,
    UploadedFile,
)
from src.domain.entities import ContentItem

from ._mapper import to_content_item_display
from .models import (
    ContentDisplayOutput,
    ContentValidationError,
    GetContentByIdInput,
    GetEmptyContentInput,
    SaveContentInput,
    SubmittedProperty,
)
from .ports import ContentRepoPort, ContentTypeRepoPort, TimePort

logger = logging.getLogger(__name__)

EMPTY_CONTENT_NAME = "Empty"


class UnknownPropertyError(KeyError):
    """A submitted property has no counterpart on the persisted content."""

    def __init__(self, alias: str) -> None:
        super().__init__(alias)
        self.alias = alias

    def __str__(self) -> str:
        return f"Persisted content has no property '{self.alias}'"


class PropertyValueError(ValueError):
    """One or more submitted values were rejected by their editors."""

    def __init__(self, errors: list[ContentValidationError]) -> None:
        super().__init__("; ".join(e.message for e in errors))
        self.errors = errors


# --- Property Value Deserialization ---


def files_for_property(
    uploaded_files: Iterable[UploadedFile], property_id: int
) -> tuple[UploadedFile, ...]:
    """Return the uploaded files belonging to one property, in upload order."""
    return tuple(f for f in uploaded_files if f.property_id == property_id)


def build_property_data(
    prop: SubmittedProperty,
    uploaded_files: Iterable[UploadedFile],
    effects: SaveEffects | None = None,
) -> ContentPropertyData:
    """Combine a submitted value with the files uploaded for it."""
    files = files_for_property(uploaded_files, prop.id)
    additional = PropertyEditorData(files=files) if files else PropertyEditorData()
    if effects is None:
        return ContentPropertyData(value=prop.value, additional=additional)
    return ContentPropertyData(value=prop.value, additional=additional, effects=effects)


def resolve_property_values(
    inp: SaveContentInput,
    effects: SaveEffects | None = None,
) -> dict[str, Any]:
    """
    Deserialize every submitted property against its stored value.

    Returns the alias -> new value mapping for properties that have an editor.
    Properties without an editor are logged and left out, so their stored
    value is untouched when the mapping is merged.

    Work editors defer is recorded on `effects`; a caller that persists the
    values settles it with `commit()` or `rollback()`.

    Raises:
        UnknownPropertyError: A submitted alias is not on the persisted content.
        PropertyValueError: Editors rejected one or more values. Every
            property is still visited, so all field errors are reported.
    """
    content = inp.persisted_content
    previous = content.property_values()
    values: dict[str, Any] = {}
    errors: list[ContentValidationError] = []

    for prop in inp.properties:
        if prop.editor is None:
            logger.warning("No property editor found for property %s", prop.alias)
            continue

        if prop.alias not in previous:
            raise UnknownPropertyError(prop.alias)

        data = build_property_data(prop, inp.uploaded_files, effects)
        try:
            values[prop.alias] = prop.editor.deserialize(data, previous[prop.alias])
        except (TypeError, ValueError) as e:
            errors.append(
                ContentValidationError(
                    code="invalid_value",
                    message=str(e),
                    field=f"properties.{prop.alias}",
                )
            )

    if errors:
        raise PropertyValueError(errors)
    return values


# --- Component Entry Points ---


def run_get_by_id(
    inp: GetContentByIdInput,
    *,
    repo: ContentRepoPort,
) -> ContentDisplayOutput:
    """
    Get the display of a content item.

    Args:
        inp: Input containing content_id.
        repo: Content repository port.

    Returns:
        ContentDisplayOutput with the display, or a not_found error on "id".
    """
    content = repo.get_by_id(inp.content_id)
    if content is None:
        return ContentDisplayOutput(
            display=None,
            errors=[
                ContentValidationError(
                    code="not_found",
                    message=f"content with id: {inp.content_id} was not found",
                    field="id",
                )
            ],
            success=False,
        )

    return ContentDisplayOutput(display=to_content_item_display(content))


def scaffold_content(
    inp: GetEmptyContentInput,
    *,
    content_type_repo: ContentTypeRepoPort,
) -> ContentItem | None:
    """Create an unsaved item for a content type, or None if the type is unknown."""
    content_type = content_type_repo.get_by_alias(inp.content_type_alias)
    if content_type is None:
        return None
    return ContentItem.scaffold(EMPTY_CONTENT_NAME, inp.parent_id, content_type)


def run_get_empty(
    inp: GetEmptyContentInput,
    *,
    content_type_repo: ContentTypeRepoPort,
) -> ContentDisplayOutput:
    """
    Get the display of a new, unsaved content item.

    The scaffold is never persisted here; it seeds a later save.
    """
    content = scaffold_content(inp, content_type_repo=content_type_repo)
    if content is None:
        return ContentDisplayOutput(
            display=None,
            errors=[
                ContentValidationError(
                    code="not_found",
                    message=f"content type with alias: {inp.content_type_alias} was not found",
                    field="content_type_alias",
                )
            ],
            success=False,
        )

    return ContentDisplayOutput(display=to_content_item_display(content))


def run_save(
    inp: SaveContentInput,
    *,
    repo: ContentRepoPort,
    time: TimePort,
) -> ContentDisplayOutput:
    """
    Save submitted property values onto the persisted content.

    Args:
        inp: Bound submission with the persisted content already resolved.
        repo: Content repository port. Save errors propagate to the caller.
        time: Time port for timestamps.

    Returns:
        ContentDisplayOutput with the display of the saved item, or the field
        errors of rejected values (nothing is saved then).
    """
    content = inp.persisted_content
    effects = SaveEffects()

    try:
        values = resolve_property_values(inp, effects)

        content.apply_property_values(values)
        if inp.name is not None and inp.name.strip():
            content.name = inp.name.strip()
        content.updated_at = time.now_utc()

        saved = repo.save(content)
    except PropertyValueError as e:
        effects.rollback()
        logger.info("Rejected save of content %s: %s", content.id, e)
        return ContentDisplayOutput(display=None, errors=e.errors, success=False)
    except Exception:
        effects.rollback()
        raise

    effects.commit()
    logger.info(
        "Saved content %s (%d of %d properties updated)",
        saved.id,
        len(values),
        len(inp.properties),
    )
    return ContentDisplayOutput(display=to_content_item_display(saved))


def run(
    inp: GetContentByIdInput | GetEmptyContentInput | SaveContentInput,
    *,
    repo: ContentRepoPort | None = None,
    content_type_repo: ContentTypeRepoPort | None = None,
    time: TimePort | None = None,
) -> ContentDisplayOutput:
    """
    Main entry point for the content component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, GetContentByIdInput):
        if repo is None:
            raise ValueError("ContentRepoPort is required for get operations")
        return run_get_by_id(inp, repo=repo)

    elif isinstance(inp, GetEmptyContentInput):
        if content_type_repo is None:
            raise ValueError("ContentTypeRepoPort is required for scaffold operations")
        return run_get_empty(inp, content_type_repo=content_type_repo)

    elif isinstance(inp, SaveContentInput):
        if repo is None or time is None:
            raise ValueError("ContentRepoPort and TimePort are required for save operations")
        return run_save(inp, repo=repo, time=time)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
