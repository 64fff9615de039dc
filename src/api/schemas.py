from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# --- Content Display ---


class ContentPropertyResponse(BaseModel):
    id: int
    alias: str
    label: str
    editor_alias: str
    value: Any = None
    description: str = ""

    model_config = ConfigDict(from_attributes=True)


class ContentTabResponse(BaseModel):
    id: int
    label: str
    properties: list[ContentPropertyResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ContentItemDisplayResponse(BaseModel):
    id: int | None = None
    name: str
    parent_id: int
    content_type_alias: str
    content_type_name: str
    is_new: bool
    created_at: datetime
    updated_at: datetime
    tabs: list[ContentTabResponse] = []

    model_config = ConfigDict(from_attributes=True)


# --- Content Save ---


class PropertySaveRequest(BaseModel):
    id: int
    alias: str
    value: Any = None


class ContentItemSaveRequest(BaseModel):
    """The JSON part of a multipart save submission."""

    id: int | None = None
    name: str | None = None
    content_type_alias: str | None = Field(default=None, alias="contentTypeAlias")
    parent_id: int = Field(default=-1, alias="parentId")
    properties: list[PropertySaveRequest] = []

    model_config = ConfigDict(populate_by_name=True)


# --- Errors ---


class FieldErrorResponse(BaseModel):
    message: str
    fields: dict[str, list[str]] = {}
