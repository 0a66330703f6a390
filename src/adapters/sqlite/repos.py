"""
SQLite repositories for the link catalog.

Each call opens its own connection; the busy timeout bounds how long any
statement waits on a locked database.
"""

from __future__ import annotations

import builtins
import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from src.components.links.models import (
    IconFilters,
    LinkFilters,
    OrderScope,
    OrderUpdate,
    ServiceFilters,
)
from src.domain.entities import Icon, Service, UserLink
from src.domain.errors import DuplicateError, NotFoundError

DEFAULT_BUSY_TIMEOUT = 5.0


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


def parse_uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLiteRepoBase:
    def __init__(self, db_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT):
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row: dict[str, Any] | None = conn.execute(query, params).fetchone()
            return row
        finally:
            conn.close()

    def _fetch_all(self, query: str, params: Sequence[Any]) -> builtins.list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            rows: builtins.list[dict[str, Any]] = conn.execute(query, tuple(params)).fetchall()
            return rows
        finally:
            conn.close()

    def _count(self, query: str, params: tuple[Any, ...]) -> int:
        row = self._fetch_one(query, params)
        return int(row["n"]) if row else 0


class SQLiteServiceRepo(SQLiteRepoBase):
    def get_by_id(self, service_id: UUID) -> Service | None:
        row = self._fetch_one("SELECT * FROM link_services WHERE id = ?", (str(service_id),))
        return self._map_row(row) if row else None

    def find_by_name_or_slug(
        self, name: str | None, slug: str | None, exclude_id: UUID | None = None
    ) -> builtins.list[Service]:
        clauses = []
        params: builtins.list[Any] = []
        if name is not None:
            clauses.append("name = ?")
            params.append(name)
        if slug is not None:
            clauses.append("slug = ?")
            params.append(slug)
        if not clauses:
            return []

        query = f"SELECT * FROM link_services WHERE ({' OR '.join(clauses)})"
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(str(exclude_id))
        return [self._map_row(row) for row in self._fetch_all(query, params)]

    def list(self, filters: ServiceFilters) -> builtins.list[Service]:
        query = "SELECT * FROM link_services WHERE 1=1"
        params: builtins.list[Any] = []

        if filters.search:
            query += " AND (name LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\')"
            params.extend([_like(filters.search)] * 2)
        if filters.is_active is not None:
            query += " AND is_active = ?"
            params.append(int(filters.is_active))
        if filters.allow_original_icon is not None:
            query += " AND allow_original_icon = ?"
            params.append(int(filters.allow_original_icon))

        query += " ORDER BY sort_order ASC, created_at ASC"
        return [self._map_row(row) for row in self._fetch_all(query, params)]

    def save(self, service: Service) -> Service:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO link_services (
                    id, name, slug, description, base_url, allow_original_icon,
                    is_active, sort_order, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    slug=excluded.slug,
                    description=excluded.description,
                    base_url=excluded.base_url,
                    allow_original_icon=excluded.allow_original_icon,
                    is_active=excluded.is_active,
                    sort_order=excluded.sort_order,
                    updated_at=excluded.updated_at
                """,
                (
                    str(service.id),
                    service.name,
                    service.slug,
                    service.description,
                    service.base_url,
                    int(service.allow_original_icon),
                    int(service.is_active),
                    service.sort_order,
                    service.created_at.isoformat(),
                    service.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return service
        except sqlite3.IntegrityError as e:
            # Concurrent insert won the unique index
            if "link_services.slug" in str(e):
                raise DuplicateError("slug", service.slug) from e
            if "link_services.name" in str(e):
                raise DuplicateError("name", service.name) from e
            raise
        finally:
            conn.close()

    def delete(self, service_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM link_services WHERE id = ?", (str(service_id),))
            conn.commit()
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Service:
        return Service(
            id=UUID(row["id"]),
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            base_url=row["base_url"],
            allow_original_icon=bool(row["allow_original_icon"]),
            is_active=bool(row["is_active"]),
            sort_order=row["sort_order"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )


class SQLiteIconRepo(SQLiteRepoBase):
    def get_by_id(self, icon_id: UUID) -> Icon | None:
        row = self._fetch_one("SELECT * FROM service_icons WHERE id = ?", (str(icon_id),))
        return self._map_row(row) if row else None

    def list(self, filters: IconFilters) -> builtins.list[Icon]:
        query = "SELECT * FROM service_icons WHERE 1=1"
        params: builtins.list[Any] = []

        if filters.search:
            query += " AND name LIKE ? ESCAPE '\\'"
            params.append(_like(filters.search))
        if filters.service_id is not None:
            query += " AND service_id = ?"
            params.append(str(filters.service_id))
        if filters.style is not None:
            query += " AND style = ?"
            params.append(filters.style)
        if filters.color_scheme is not None:
            query += " AND color_scheme = ?"
            params.append(filters.color_scheme)
        if filters.is_active is not None:
            query += " AND is_active = ?"
            params.append(int(filters.is_active))

        query += " ORDER BY sort_order ASC, created_at ASC"
        return [self._map_row(row) for row in self._fetch_all(query, params)]

    def count_by_service(self, service_id: UUID) -> int:
        return self._count(
            "SELECT COUNT(*) AS n FROM service_icons WHERE service_id = ?", (str(service_id),)
        )

    def save(self, icon: Icon) -> Icon:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO service_icons (
                    id, service_id, name, file_name, file_path, style, color_scheme,
                    description, is_active, sort_order, uploaded_by, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    style=excluded.style,
                    color_scheme=excluded.color_scheme,
                    description=excluded.description,
                    is_active=excluded.is_active,
                    sort_order=excluded.sort_order,
                    updated_at=excluded.updated_at
                """,
                (
                    str(icon.id),
                    str(icon.service_id),
                    icon.name,
                    icon.file_name,
                    icon.file_path,
                    icon.style,
                    icon.color_scheme,
                    icon.description,
                    int(icon.is_active),
                    icon.sort_order,
                    str(icon.uploaded_by) if icon.uploaded_by else None,
                    icon.created_at.isoformat(),
                    icon.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return icon
        finally:
            conn.close()

    def delete(self, icon_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM service_icons WHERE id = ?", (str(icon_id),))
            conn.commit()
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Icon:
        return Icon(
            id=UUID(row["id"]),
            service_id=UUID(row["service_id"]),
            name=row["name"],
            file_name=row["file_name"],
            file_path=row["file_path"],
            style=row["style"],
            color_scheme=row["color_scheme"],
            description=row["description"],
            is_active=bool(row["is_active"]),
            sort_order=row["sort_order"],
            uploaded_by=parse_uuid(row["uploaded_by"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )


class SQLiteUserLinkRepo(SQLiteRepoBase):
    def get_by_id(self, link_id: UUID) -> UserLink | None:
        row = self._fetch_one("SELECT * FROM user_links WHERE id = ?", (str(link_id),))
        return self._map_row(row) if row else None

    def list_for_user(self, user_id: UUID, filters: LinkFilters) -> builtins.list[UserLink]:
        query = "SELECT * FROM user_links WHERE user_id = ?"
        params: builtins.list[Any] = [str(user_id)]

        if filters.search:
            query += (
                " AND (title LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\'"
                " OR url LIKE ? ESCAPE '\\')"
            )
            params.extend([_like(filters.search)] * 3)
        if filters.service_id is not None:
            query += " AND service_id = ?"
            params.append(str(filters.service_id))
        if filters.is_active is not None:
            query += " AND is_active = ?"
            params.append(int(filters.is_active))
        if filters.use_original_icon is not None:
            query += " AND use_original_icon = ?"
            params.append(int(filters.use_original_icon))

        query += " ORDER BY sort_order ASC, created_at ASC"
        return [self._map_row(row) for row in self._fetch_all(query, params)]

    def count_by_service(self, service_id: UUID) -> int:
        return self._count(
            "SELECT COUNT(*) AS n FROM user_links WHERE service_id = ?", (str(service_id),)
        )

    def count_by_icon(self, icon_id: UUID) -> int:
        return self._count(
            "SELECT COUNT(*) AS n FROM user_links WHERE icon_id = ?", (str(icon_id),)
        )

    def save(self, link: UserLink) -> UserLink:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO user_links (
                    id, user_id, service_id, icon_id, url, title, description, sort_order,
                    is_active, use_original_icon, original_icon_url, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    icon_id=excluded.icon_id,
                    url=excluded.url,
                    title=excluded.title,
                    description=excluded.description,
                    sort_order=excluded.sort_order,
                    is_active=excluded.is_active,
                    use_original_icon=excluded.use_original_icon,
                    original_icon_url=excluded.original_icon_url,
                    updated_at=excluded.updated_at
                WHERE user_links.user_id = excluded.user_id
                """,
                (
                    str(link.id),
                    str(link.user_id),
                    str(link.service_id),
                    str(link.icon_id) if link.icon_id else None,
                    link.url,
                    link.title,
                    link.description,
                    link.sort_order,
                    int(link.is_active),
                    int(link.use_original_icon),
                    link.original_icon_url,
                    link.created_at.isoformat(),
                    link.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return link
        finally:
            conn.close()

    def delete(self, link_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM user_links WHERE id = ?", (str(link_id),))
            conn.commit()
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> UserLink:
        return UserLink(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            service_id=UUID(row["service_id"]),
            icon_id=parse_uuid(row["icon_id"]),
            url=row["url"],
            title=row["title"],
            description=row["description"],
            sort_order=row["sort_order"],
            is_active=bool(row["is_active"]),
            use_original_icon=bool(row["use_original_icon"]),
            original_icon_url=row["original_icon_url"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )


class SQLiteSortOrderStore(SQLiteRepoBase):
    """Sort-order reads and transactional bulk updates for every ordered table."""

    # collection -> (table, owner column, entity name)
    _SCOPES: dict[str, tuple[str, str | None, str]] = {
        "services": ("link_services", None, "Service"),
        "icons": ("service_icons", "service_id", "Icon"),
        "user_links": ("user_links", "user_id", "UserLink"),
    }

    def _scope_filter(self, scope: OrderScope) -> tuple[str, str, tuple[Any, ...], str]:
        table, owner_column, entity = self._SCOPES[scope.collection]
        if owner_column is None:
            return table, "", (), entity
        if scope.owner_id is None:
            raise ValueError(f"Scope '{scope.collection}' requires an owner id")
        return table, f" AND {owner_column} = ?", (str(scope.owner_id),), entity

    def max_sort_order(self, scope: OrderScope) -> int | None:
        table, where, params, _ = self._scope_filter(scope)
        row = self._fetch_one(
            f"SELECT MAX(sort_order) AS max_order FROM {table} WHERE 1=1{where}", params
        )
        if row is None or row["max_order"] is None:
            return None
        return int(row["max_order"])

    def apply(self, scope: OrderScope, updates: Sequence[OrderUpdate]) -> None:
        table, where, params, entity = self._scope_filter(scope)
        now = datetime.now(UTC).isoformat()

        conn = self._get_conn()
        try:
            # Take the write lock up front so readers see old or new order, never a mix
            conn.execute("BEGIN IMMEDIATE")
            for update in updates:
                cursor = conn.execute(
                    f"UPDATE {table} SET sort_order = ?, updated_at = ? WHERE id = ?{where}",
                    (update.sort_order, now, str(update.id), *params),
                )
                if cursor.rowcount != 1:
                    raise NotFoundError(entity, update.id)
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()
