from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

ROOT_PARENT_ID = -1
DEFAULT_GROUP = "Properties"


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Content Types ---

class PropertyType(BaseModel):
    id: int
    alias: str
    name: str
    editor_alias: str
    group: str = DEFAULT_GROUP
    description: str = ""


class ContentType(BaseModel):
    id: int
    alias: str
    name: str
    property_types: list[PropertyType] = Field(default_factory=list)

    def property_type_by_alias(self, alias: str) -> PropertyType | None:
        for property_type in self.property_types:
            if property_type.alias == alias:
                return property_type
        return None


# --- Content ---

class Property(BaseModel):
    # Shares its id with the PropertyType so it is stable across saves
    id: int
    alias: str
    editor_alias: str
    value: Any = None


class ContentItem(BaseModel):
    id: int | None = None
    name: str
    parent_id: int = ROOT_PARENT_ID
    content_type: ContentType
    properties: list[Property] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def scaffold(cls, name: str, parent_id: int, content_type: ContentType) -> "ContentItem":
        """Build an unsaved item with one empty property per property type."""
        return cls(
            name=name,
            parent_id=parent_id,
            content_type=content_type.model_copy(deep=True),
            properties=[
                Property(id=pt.id, alias=pt.alias, editor_alias=pt.editor_alias)
                for pt in content_type.property_types
            ],
        )

    @property
    def is_new(self) -> bool:
        return self.id is None

    def property_by_alias(self, alias: str) -> Property | None:
        for prop in self.properties:
            if prop.alias == alias:
                return prop
        return None

    def has_property(self, alias: str) -> bool:
        return self.property_by_alias(alias) is not None

    def property_values(self) -> dict[str, Any]:
        return {prop.alias: prop.value for prop in self.properties}

    def apply_property_values(self, values: dict[str, Any]) -> None:
        """Merge alias -> value updates into the item in one step."""
        unknown = [alias for alias in values if not self.has_property(alias)]
        if unknown:
            raise KeyError(f"Content has no properties named: {', '.join(unknown)}")

        for prop in self.properties:
            if prop.alias in values:
                prop.value = values[prop.alias]
