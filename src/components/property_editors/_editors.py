"""
Built-in property editors.

Each editor exposes `alias`, `name` and `deserialize(data, current_value)`.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Iterable, Mapping
from functools import partial
from html.parser import HTMLParser
from typing import Any

from .models import ContentPropertyData
from .ports import MediaStorePort

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_TAGS = (
    "p",
    "br",
    "h1",
    "h2",
    "h3",
    "blockquote",
    "ul",
    "ol",
    "li",
    "strong",
    "em",
    "code",
    "pre",
    "a",
    "img",
)
DEFAULT_ALLOWED_ATTRS: dict[str, tuple[str, ...]] = {
    "a": ("href", "title"),
    "img": ("src", "alt", "title", "width", "height"),
}
DEFAULT_FORBIDDEN_TAGS = ("script", "style", "iframe", "object", "embed")
DEFAULT_FORBIDDEN_PROTOCOLS = ("javascript", "vbscript", "data")

URL_ATTRS = frozenset({"href", "src"})
VOID_TAGS = frozenset({"br", "hr", "img"})

_TRUE_VALUES = frozenset({"1", "true", "on", "yes"})
# Browsers ignore whitespace and control characters inside a URL scheme
_IGNORED_URL_CHARS_RE = re.compile(r"[\x00-\x20\x7f]+")


class TextboxEditor:
    """Single line text, stored as submitted."""

    alias = "textbox"
    name = "Textbox"

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        return data.value


class TextareaEditor:
    """Multi line text with normalized line endings."""

    alias = "textarea"
    name = "Textarea"

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        if isinstance(data.value, str):
            return data.value.replace("\r\n", "\n")
        return data.value


# --- Rich text ---


def url_protocol(url: str) -> str | None:
    """
    Return the lower-cased protocol of a URL, or None for a relative URL.

    Character references are decoded and ignored characters removed first,
    so `&#106;ava\tscript:` reads as `javascript`.
    """
    compact = _IGNORED_URL_CHARS_RE.sub("", html.unescape(url)).lower()
    scheme, sep, _ = compact.partition(":")
    if not sep or any(c in scheme for c in "/?#"):
        return None
    return scheme


class _AllowlistSanitizer(HTMLParser):
    """
    Rebuilds markup keeping only allowed tags and attributes.

    Forbidden elements are dropped with their content. Other tags that are not
    allowed are unwrapped, keeping their text. Comments and declarations are
    dropped. Text and attribute values are re-escaped on output.
    """

    def __init__(
        self,
        allowed_tags: frozenset[str],
        allowed_attrs: Mapping[str, frozenset[str]],
        forbidden_tags: frozenset[str],
        forbidden_protocols: frozenset[str],
    ) -> None:
        super().__init__(convert_charrefs=True)
        self._allowed_tags = allowed_tags
        self._allowed_attrs = allowed_attrs
        self._forbidden_tags = forbidden_tags
        self._forbidden_protocols = forbidden_protocols
        self._out: list[str] = []
        self._skip_depth = 0

    def output(self) -> str:
        return "".join(self._out)

    def _render_start(self, tag: str, attrs: list[tuple[str, str | None]]) -> str:
        allowed = self._allowed_attrs.get(tag, frozenset())
        parts = [tag]
        for name, value in attrs:
            if name not in allowed or name.startswith("on"):
                continue
            if value is None:
                parts.append(name)
                continue
            if name in URL_ATTRS and url_protocol(value) in self._forbidden_protocols:
                continue
            parts.append(f'{name}="{html.escape(value, quote=True)}"')
        return f"<{' '.join(parts)}>"

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in self._forbidden_tags:
            if tag not in VOID_TAGS:
                self._skip_depth += 1
            return
        if self._skip_depth or tag not in self._allowed_tags:
            return
        self._out.append(self._render_start(tag, attrs))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self._skip_depth or tag in self._forbidden_tags or tag not in self._allowed_tags:
            return
        self._out.append(self._render_start(tag, attrs))
        if tag not in VOID_TAGS:
            self._out.append(f"</{tag}>")

    def handle_endtag(self, tag: str) -> None:
        if tag in self._forbidden_tags:
            if self._skip_depth:
                self._skip_depth -= 1
            return
        if self._skip_depth or tag not in self._allowed_tags or tag in VOID_TAGS:
            return
        self._out.append(f"</{tag}>")

    def handle_data(self, data: str) -> None:
        if not self._skip_depth:
            self._out.append(html.escape(data, quote=False))


class RichTextEditor:
    """
    HTML editor.

    Sanitizes on an allowlist: only allowed tags and their allowed attributes
    survive, event handler attributes never do, and href/src values using a
    forbidden protocol are removed. Forbidden elements go with their content.
    """

    alias = "richtext"
    name = "Rich text editor"

    def __init__(
        self,
        allowed_tags: Iterable[str] = DEFAULT_ALLOWED_TAGS,
        allowed_attrs: Mapping[str, Iterable[str]] = DEFAULT_ALLOWED_ATTRS,
        forbidden_tags: Iterable[str] = DEFAULT_FORBIDDEN_TAGS,
        forbidden_protocols: Iterable[str] = DEFAULT_FORBIDDEN_PROTOCOLS,
    ) -> None:
        self._allowed_tags = frozenset(t.lower() for t in allowed_tags)
        self._allowed_attrs = {
            tag.lower(): frozenset(a.lower() for a in attrs) for tag, attrs in allowed_attrs.items()
        }
        self._forbidden_tags = frozenset(t.lower() for t in forbidden_tags)
        self._forbidden_protocols = frozenset(p.lower().rstrip(":") for p in forbidden_protocols)

    def sanitize(self, markup: str) -> str:
        parser = _AllowlistSanitizer(
            self._allowed_tags,
            self._allowed_attrs,
            self._forbidden_tags,
            self._forbidden_protocols,
        )
        parser.feed(markup)
        parser.close()
        return parser.output()

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        if not isinstance(data.value, str):
            return data.value
        return self.sanitize(data.value)


# --- Scalars ---


class IntegerEditor:
    """Whole numbers; blank input clears the value."""

    alias = "integer"
    name = "Numeric"

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        value = data.value
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"'{data.value}' is not a whole number") from e


class TrueFalseEditor:
    alias = "truefalse"
    name = "True/false"

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        if isinstance(data.value, bool):
            return data.value
        if data.value is None:
            return False
        return str(data.value).strip().lower() in _TRUE_VALUES


# --- Uploads ---


def _is_clear_request(value: Any) -> bool:
    return isinstance(value, dict) and bool(value.get("clear"))


class UploadFieldEditor:
    """
    File upload editor.

    Stores the first uploaded file in the media store and returns its path.
    Without files the previous value is kept, unless the submitted value is
    `{"clear": true}`.

    The previous file is only removed once the save commits; a new file is
    removed again if the save fails.
    """

    alias = "upload"
    name = "Upload"

    def __init__(self, media_store: MediaStorePort) -> None:
        self._media_store = media_store

    def _delete(self, path: str) -> None:
        try:
            self._media_store.delete(path)
        except ValueError:
            logger.warning("Refusing to delete media outside the store: %s", path)

    def deserialize(self, data: ContentPropertyData, current_value: Any) -> Any:
        previous = current_value if isinstance(current_value, str) and current_value else None
        files = data.additional.files

        if files:
            if len(files) > 1:
                logger.info(
                    "Upload property %s received %d files; keeping the first",
                    files[0].property_id,
                    len(files),
                )
            upload = files[0]
            new_path = self._media_store.save_file(
                upload.property_id, upload.file_name, upload.temp_file_path
            )
            data.effects.on_rollback(partial(self._delete, new_path))
            if previous is not None and previous != new_path:
                data.effects.on_commit(partial(self._delete, previous))
            return new_path

        if _is_clear_request(data.value):
            if previous is not None:
                data.effects.on_commit(partial(self._delete, previous))
            return None

        return current_value
