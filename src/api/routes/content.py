"""
Content editing API routes.

JSON only. Not-found and binding failures carry field-level errors:
{"message": ..., "fields": {"<field>": ["..."]}}.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from src.api.binders import BindingError, UploadStaging, bind_content_item_save
from src.api.deps import (
    Settings,
    get_clock,
    get_content_repo,
    get_content_type_repo,
    get_property_editor_registry,
    get_settings,
    get_upload_rules,
)
from src.api.schemas import ContentItemDisplayResponse, ContentItemSaveRequest
from src.components.content import (
    ContentValidationError,
    GetContentByIdInput,
    GetEmptyContentInput,
    run_get_by_id,
    run_get_empty,
    run_save,
)
from src.components.property_editors import PropertyEditorRegistry
from src.rules.models import UploadsRules

router = APIRouter()

CONTENT_ITEM_FIELD = "contentItem"


def _error_detail(message: str, errors: list[ContentValidationError]) -> dict[str, Any]:
    fields: dict[str, list[str]] = {}
    for err in errors:
        fields.setdefault(err.field or "", []).append(err.message)
    return {"message": message, "fields": fields}


@router.get("/empty", response_model=ContentItemDisplayResponse)
def get_empty(
    content_type_alias: str = Query(alias="contentTypeAlias"),
    parent_id: int = Query(default=-1, alias="parentId"),
    content_type_repo: Any = Depends(get_content_type_repo),
) -> Any:
    """Get an unsaved content item scaffolded from a content type."""
    inp = GetEmptyContentInput(content_type_alias=content_type_alias, parent_id=parent_id)
    result = run_get_empty(inp, content_type_repo=content_type_repo)

    if not result.success:
        raise HTTPException(
            status_code=404, detail=_error_detail("Content type not found", result.errors)
        )

    return result.display


@router.get("/{item_id}", response_model=ContentItemDisplayResponse)
def get_by_id(
    item_id: int,
    repo: Any = Depends(get_content_repo),
) -> Any:
    """Get the content item display for an id."""
    result = run_get_by_id(GetContentByIdInput(content_id=item_id), repo=repo)

    if not result.success:
        raise HTTPException(status_code=404, detail=_error_detail("Content not found", result.errors))

    return result.display


def _save_submission(
    req: ContentItemSaveRequest,
    files: list[tuple[str, Any]],
    *,
    settings: Settings,
    repo: Any,
    content_type_repo: Any,
    registry: PropertyEditorRegistry,
    uploads: UploadsRules,
    clock: Any,
) -> Any:
    """Bind and save a parsed submission. Blocking, so it runs in the threadpool."""
    # Staged files are removed when the request finishes, success or not
    with UploadStaging(settings.staging_dir) as staging:
        try:
            inp = bind_content_item_save(
                req,
                files,
                content_repo=repo,
                content_type_repo=content_type_repo,
                registry=registry,
                staging=staging,
                uploads=uploads,
            )
        except BindingError as e:
            message = "Content not found" if e.status_code == 404 else "Invalid submission"
            raise HTTPException(
                status_code=e.status_code, detail=_error_detail(message, e.errors)
            ) from e

        result = run_save(inp, repo=repo, time=clock)

    if not result.success:
        raise HTTPException(
            status_code=400, detail=_error_detail("Invalid submission", result.errors)
        )
    return result.display


@router.post("/save", response_model=ContentItemDisplayResponse)
async def post_save(
    request: Request,
    settings: Settings = Depends(get_settings),
    repo: Any = Depends(get_content_repo),
    content_type_repo: Any = Depends(get_content_type_repo),
    registry: PropertyEditorRegistry = Depends(get_property_editor_registry),
    uploads: UploadsRules = Depends(get_upload_rules),
    clock: Any = Depends(get_clock),
) -> Any:
    """
    Save a content item from a multipart submission.

    The `contentItem` form field holds the JSON payload; files are sent in
    fields named `file_<propertyId>`.
    """
    async with request.form() as form:
        raw = form.get(CONTENT_ITEM_FIELD)
        if not isinstance(raw, str):
            raise HTTPException(
                status_code=400,
                detail={
                    "message": "Invalid submission",
                    "fields": {CONTENT_ITEM_FIELD: [f"'{CONTENT_ITEM_FIELD}' JSON field is required"]},
                },
            )

        try:
            req = ContentItemSaveRequest.model_validate_json(raw)
        except ValidationError as e:
            fields: dict[str, list[str]] = {}
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"]) or CONTENT_ITEM_FIELD
                fields.setdefault(loc, []).append(err["msg"])
            raise HTTPException(
                status_code=400, detail={"message": "Invalid submission", "fields": fields}
            ) from e

        files = [(key, value) for key, value in form.multi_items() if not isinstance(value, str)]

        return await run_in_threadpool(
            _save_submission,
            req,
            files,
            settings=settings,
            repo=repo,
            content_type_repo=content_type_repo,
            registry=registry,
            uploads=uploads,
            clock=clock,
        )
