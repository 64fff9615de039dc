from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities import DEFAULT_GROUP


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class UploadsRules(BaseModel):
    max_upload_bytes: int
    allowlist_extensions: list[str]


class RichTextRules(BaseModel):
    allowed_tags: list[str] = Field(
        default_factory=lambda: [
            "p", "br", "h1", "h2", "h3", "blockquote", "ul", "ol", "li",
            "strong", "em", "code", "pre", "a", "img",
        ]
    )
    allowed_attrs: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "a": ["href", "title"],
            "img": ["src", "alt", "title", "width", "height"],
        }
    )
    forbidden_tags: list[str] = Field(
        default_factory=lambda: ["script", "style", "iframe", "object", "embed"]
    )
    forbidden_protocols: list[str] = Field(
        default_factory=lambda: ["javascript", "vbscript", "data"]
    )

class PropertyTypeRule(BaseModel):
    alias: str
    name: str
    editor: str
    group: str = DEFAULT_GROUP
    description: str = ""

class ContentTypeRule(BaseModel):
    alias: str
    name: str
    properties: list[PropertyTypeRule] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

class Rules(BaseModel):
    project: ProjectRules
    uploads: UploadsRules
    richtext: RichTextRules = Field(default_factory=RichTextRules)
    content_types: list[ContentTypeRule] = Field(default_factory=list)
