import json
import sqlite3
from datetime import datetime
from typing import Any

from src.domain.entities import ContentItem, ContentType, Property, PropertyType


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _load_content_type(conn: sqlite3.Connection, where: str, param: Any) -> ContentType | None:
    row = conn.execute(f"SELECT * FROM content_types WHERE {where} = ?", (param,)).fetchone()
    if not row:
        return None

    pt_rows = conn.execute(
        "SELECT * FROM property_types WHERE content_type_id = ? ORDER BY sort_order ASC, id ASC",
        (row["id"],),
    ).fetchall()

    return ContentType(
        id=row["id"],
        alias=row["alias"],
        name=row["name"],
        property_types=[
            PropertyType(
                id=pt["id"],
                alias=pt["alias"],
                name=pt["name"],
                editor_alias=pt["editor_alias"],
                group=pt["group_name"],
                description=pt["description"],
            )
            for pt in pt_rows
        ],
    )


class SQLiteContentTypeRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return _connect(self.db_path)

    def get_by_alias(self, alias: str) -> ContentType | None:
        conn = self._get_conn()
        try:
            return _load_content_type(conn, "alias", alias)
        finally:
            conn.close()

    def get_by_id(self, content_type_id: int) -> ContentType | None:
        conn = self._get_conn()
        try:
            return _load_content_type(conn, "id", content_type_id)
        finally:
            conn.close()

    def list_all(self) -> list[ContentType]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT id FROM content_types ORDER BY alias ASC").fetchall()
            items = [_load_content_type(conn, "id", r["id"]) for r in rows]
            return [ct for ct in items if ct is not None]
        finally:
            conn.close()

    def save(self, content_type: ContentType) -> ContentType:
        """
        Upsert a content type by alias.

        Property types keep their ids across saves (matched by alias); property
        types no longer listed are removed together with their stored values.
        Returns the content type as stored, with ids assigned.
        """
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO content_types (alias, name) VALUES (?, ?)
                ON CONFLICT(alias) DO UPDATE SET name=excluded.name
            """,
                (content_type.alias, content_type.name),
            )
            ct_id = conn.execute(
                "SELECT id FROM content_types WHERE alias = ?", (content_type.alias,)
            ).fetchone()["id"]

            for position, pt in enumerate(content_type.property_types):
                conn.execute(
                    """
                    INSERT INTO property_types
                    (content_type_id, alias, name, editor_alias, group_name, description, sort_order)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(content_type_id, alias) DO UPDATE SET
                        name=excluded.name,
                        editor_alias=excluded.editor_alias,
                        group_name=excluded.group_name,
                        description=excluded.description,
                        sort_order=excluded.sort_order
                """,
                    (ct_id, pt.alias, pt.name, pt.editor_alias, pt.group, pt.description, position),
                )

            aliases = [pt.alias for pt in content_type.property_types]
            placeholders = ", ".join("?" for _ in aliases)
            if aliases:
                conn.execute(
                    f"DELETE FROM property_types WHERE content_type_id = ? "
                    f"AND alias NOT IN ({placeholders})",
                    (ct_id, *aliases),
                )
            else:
                conn.execute("DELETE FROM property_types WHERE content_type_id = ?", (ct_id,))

            conn.commit()
            saved = _load_content_type(conn, "id", ct_id)
            assert saved is not None
            return saved
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


class SQLiteContentRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return _connect(self.db_path)

    def save(self, item: ContentItem) -> ContentItem:
        """Insert or update an item and its property values in one transaction."""
        conn = self._get_conn()
        try:
            if item.id is None:
                cursor = conn.execute(
                    """
                    INSERT INTO content_items
                    (name, parent_id, content_type_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                """,
                    (
                        item.name,
                        item.parent_id,
                        item.content_type.id,
                        item.created_at.isoformat(),
                        item.updated_at.isoformat(),
                    ),
                )
                item_id = cursor.lastrowid
            else:
                conn.execute(
                    """
                    INSERT INTO content_items
                    (id, name, parent_id, content_type_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name=excluded.name,
                        parent_id=excluded.parent_id,
                        content_type_id=excluded.content_type_id,
                        updated_at=excluded.updated_at
                """,
                    (
                        item.id,
                        item.name,
                        item.parent_id,
                        item.content_type.id,
                        item.created_at.isoformat(),
                        item.updated_at.isoformat(),
                    ),
                )
                item_id = item.id

            for prop in item.properties:
                conn.execute(
                    """
                    INSERT INTO content_properties (content_item_id, property_type_id, value_json)
                    VALUES (?, ?, ?)
                    ON CONFLICT(content_item_id, property_type_id) DO UPDATE SET
                        value_json=excluded.value_json
                """,
                    (item_id, prop.id, json.dumps(prop.value)),
                )

            conn.commit()
            item.id = item_id
            return item
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, item_id: int) -> ContentItem | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM content_items WHERE id = ?", (item_id,)).fetchone()
            if not row:
                return None

            content_type = _load_content_type(conn, "id", row["content_type_id"])
            if content_type is None:
                return None

            value_rows = conn.execute(
                "SELECT property_type_id, value_json FROM content_properties "
                "WHERE content_item_id = ?",
                (item_id,),
            ).fetchall()
            values = {
                r["property_type_id"]: json.loads(r["value_json"]) if r["value_json"] else None
                for r in value_rows
            }

            return ContentItem(
                id=row["id"],
                name=row["name"],
                parent_id=row["parent_id"],
                content_type=content_type,
                properties=[
                    Property(
                        id=pt.id,
                        alias=pt.alias,
                        editor_alias=pt.editor_alias,
                        value=values.get(pt.id),
                    )
                    for pt in content_type.property_types
                ],
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
        finally:
            conn.close()
