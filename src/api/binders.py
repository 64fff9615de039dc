"""
Turns a multipart save request into a SaveContentInput.

Resolves the persisted content (fetched by id, or scaffolded when the
submission has no id), checks that every submitted alias exists on it,
resolves each property's editor, and stages uploaded files to disk.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Protocol

from src.adapters.fs.filestore import safe_file_name
from src.api.schemas import ContentItemSaveRequest, PropertySaveRequest
from src.components.content import (
    ContentValidationError,
    GetEmptyContentInput,
    SaveContentInput,
    SubmittedProperty,
    scaffold_content,
)
from src.components.property_editors import PropertyEditorRegistry, UploadedFile
from src.domain.entities import ContentItem, Property
from src.ports.repo import ContentRepoPort, ContentTypeRepoPort
from src.rules.models import UploadsRules

logger = logging.getLogger(__name__)

FILE_FIELD_PREFIX = "file_"


class UploadLike(Protocol):
    filename: str | None
    content_type: str | None
    file: BinaryIO


class BindingError(Exception):
    """The submission cannot be bound; carries field-level errors."""

    def __init__(self, errors: list[ContentValidationError], status_code: int = 400) -> None:
        super().__init__("; ".join(e.message for e in errors))
        self.errors = errors
        self.status_code = status_code


class UploadStaging:
    """
    Temporary home for the files of one request.

    Staged files are removed on exit, whether or not the save succeeded.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base_dir = base_dir
        self.path: Path | None = None
        self.staged: list[UploadedFile] = []

    def __enter__(self) -> UploadStaging:
        self.path = Path(tempfile.mkdtemp(prefix="content-upload-", dir=self._base_dir))
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.path is not None:
            shutil.rmtree(self.path, ignore_errors=True)
            logger.debug("Removed %d staged upload(s) from %s", len(self.staged), self.path)
            self.path = None

    def stage(self, property_id: int, upload: UploadLike) -> UploadedFile:
        if self.path is None:
            raise RuntimeError("UploadStaging must be entered before staging files")

        file_name = upload.filename or "file"
        target = self.path / f"{len(self.staged)}_{safe_file_name(file_name)}"
        with open(target, "wb") as out:
            shutil.copyfileobj(upload.file, out)

        staged = UploadedFile(
            property_id=property_id,
            temp_file_path=str(target),
            file_name=file_name,
            content_type=upload.content_type,
        )
        self.staged.append(staged)
        return staged


def parse_property_id(field_name: str) -> int | None:
    """Extract the property id from a `file_<propertyId>` form field name."""
    if not field_name.startswith(FILE_FIELD_PREFIX):
        return None
    try:
        return int(field_name[len(FILE_FIELD_PREFIX):])
    except ValueError:
        return None


def _resolve_persisted_content(
    req: ContentItemSaveRequest,
    content_repo: ContentRepoPort,
    content_type_repo: ContentTypeRepoPort,
) -> ContentItem:
    if req.id is not None:
        content = content_repo.get_by_id(req.id)
        if content is None:
            raise BindingError(
                [
                    ContentValidationError(
                        code="not_found",
                        message=f"content with id: {req.id} was not found",
                        field="id",
                    )
                ],
                status_code=404,
            )
        return content

    if not req.content_type_alias:
        raise BindingError(
            [
                ContentValidationError(
                    code="content_type_required",
                    message="contentTypeAlias is required when creating content",
                    field="content_type_alias",
                )
            ]
        )

    scaffold = scaffold_content(
        GetEmptyContentInput(content_type_alias=req.content_type_alias, parent_id=req.parent_id),
        content_type_repo=content_type_repo,
    )
    if scaffold is None:
        raise BindingError(
            [
                ContentValidationError(
                    code="not_found",
                    message=f"content type with alias: {req.content_type_alias} was not found",
                    field="content_type_alias",
                )
            ],
            status_code=404,
        )
    return scaffold


def _match_properties(
    req: ContentItemSaveRequest, content: ContentItem
) -> tuple[list[tuple[PropertySaveRequest, Property]], list[ContentValidationError]]:
    """Pair each submitted property with the persisted property it targets."""
    matched: list[tuple[PropertySaveRequest, Property]] = []
    errors: list[ContentValidationError] = []
    for prop in req.properties:
        persisted = content.property_by_alias(prop.alias)
        if persisted is None:
            errors.append(
                ContentValidationError(
                    code="unknown_property",
                    message=f"Content type '{content.content_type.alias}' "
                    f"has no property '{prop.alias}'",
                    field=f"properties.{prop.alias}",
                )
            )
        elif persisted.id != prop.id:
            errors.append(
                ContentValidationError(
                    code="property_id_mismatch",
                    message=f"Property '{prop.alias}' has id {persisted.id}, not {prop.id}",
                    field=f"properties.{prop.alias}",
                )
            )
        else:
            matched.append((prop, persisted))
    return matched, errors


def _stage_files(
    files: list[tuple[str, UploadLike]],
    staging: UploadStaging,
    uploads: UploadsRules,
) -> tuple[list[UploadedFile], list[ContentValidationError]]:
    allowed = {ext.lower().lstrip(".") for ext in uploads.allowlist_extensions}
    staged: list[UploadedFile] = []
    errors: list[ContentValidationError] = []

    for field_name, upload in files:
        property_id = parse_property_id(field_name)
        if property_id is None:
            errors.append(
                ContentValidationError(
                    code="invalid_file_field",
                    message=f"File field '{field_name}' must be named file_<propertyId>",
                    field=f"files.{field_name}",
                )
            )
            continue

        extension = Path(upload.filename or "").suffix.lower().lstrip(".")
        if extension not in allowed:
            errors.append(
                ContentValidationError(
                    code="invalid_extension",
                    message=f"File extension '{extension}' is not allowed",
                    field=f"files.{field_name}",
                )
            )
            continue

        uploaded = staging.stage(property_id, upload)
        if Path(uploaded.temp_file_path).stat().st_size > uploads.max_upload_bytes:
            errors.append(
                ContentValidationError(
                    code="file_too_large",
                    message=f"File exceeds {uploads.max_upload_bytes} bytes",
                    field=f"files.{field_name}",
                )
            )
            continue
        staged.append(uploaded)

    return staged, errors


def bind_content_item_save(
    req: ContentItemSaveRequest,
    files: list[tuple[str, UploadLike]],
    *,
    content_repo: ContentRepoPort,
    content_type_repo: ContentTypeRepoPort,
    registry: PropertyEditorRegistry,
    staging: UploadStaging,
    uploads: UploadsRules,
) -> SaveContentInput:
    """
    Build a SaveContentInput from a parsed request.

    Raises:
        BindingError: 404 for an unknown content id or content type, 400 for
            unknown properties or rejected uploads.
    """
    content = _resolve_persisted_content(req, content_repo, content_type_repo)

    matched, errors = _match_properties(req, content)
    uploaded_files, file_errors = _stage_files(files, staging, uploads)
    errors.extend(file_errors)
    if errors:
        raise BindingError(errors)

    properties = tuple(
        SubmittedProperty(
            id=prop.id,
            alias=prop.alias,
            value=prop.value,
            editor=registry.resolve(persisted.editor_alias),
        )
        for prop, persisted in matched
    )

    return SaveContentInput(
        properties=properties,
        persisted_content=content,
        uploaded_files=tuple(uploaded_files),
        name=req.name,
    )
